"""Data models shared by the execution engine."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class OutcomeKind(str, Enum):
    """Terminal outcome of a single test unit."""

    PASSED = "passed"
    ERROR = "error"
    FAILURE = "failure"
    WARNING = "warning"
    INCOMPLETE = "incomplete"
    SKIPPED = "skipped"
    RISKY = "risky"


class SuiteState(str, Enum):
    """States a suite passes through while its fixtures are driven."""

    INIT = "init"
    SETUP = "setup"
    BEFORE_ALL = "before_all"
    DISPATCH = "dispatch"
    AFTER_ALL = "after_all"
    ABORT_ALL_AS_FAILED = "abort_all_as_failed"
    TEARDOWN = "teardown"
    DONE = "done"


@dataclass
class ExecutionFlags:
    """Runtime flags passed through to units.

    ``None`` means "not configured"; such flags are filled in from the
    enclosing suite before dispatch.
    """

    run_in_separate_process: Optional[bool] = None
    preserve_global_state: Optional[bool] = None
    backup_globals: Optional[bool] = None
    backup_static_attributes: Optional[bool] = None

    def inherit(self, parent: "ExecutionFlags") -> None:
        """Copy every flag that is unset here from ``parent``."""
        for name in self.__dataclass_fields__:
            if getattr(self, name) is None:
                setattr(self, name, getattr(parent, name))

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "run_in_separate_process": self.run_in_separate_process,
            "preserve_global_state": self.preserve_global_state,
            "backup_globals": self.backup_globals,
            "backup_static_attributes": self.backup_static_attributes,
        }


@dataclass
class Outcome:
    """The terminal outcome recorded for one unit."""

    unit: Any
    kind: OutcomeKind
    detail: Optional[BaseException] = None
    elapsed: float = 0.0

    @property
    def test_name(self) -> str:
        return self.unit.display_name

    @property
    def message(self) -> str:
        """Message of the triggering condition, empty for passed tests."""
        if self.detail is None:
            return ""
        text = str(self.detail)
        if not text:
            return type(self.detail).__name__
        return text

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "test_name": self.test_name,
            "kind": self.kind.value,
            "exception": type(self.detail).__name__ if self.detail is not None else None,
            "message": self.message,
            "duration_ms": int(self.elapsed * 1000),
        }
