"""Leaf test units."""

import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Iterator, Optional

from suiterunner.core.errors import (
    AssertionFailedError,
    IncompleteTest,
    RiskyTest,
    SkipTest,
    SuiteRunnerError,
    TestWarning,
)
from suiterunner.core.models import ExecutionFlags, OutcomeKind

if TYPE_CHECKING:
    from suiterunner.core.ledger import OutcomeLedger
    from suiterunner.core.scheduler import Scheduler


# Checked in order, so subclasses must come before their bases.
_SIGNAL_KINDS = (
    (SkipTest, OutcomeKind.SKIPPED),
    (IncompleteTest, OutcomeKind.INCOMPLETE),
    (RiskyTest, OutcomeKind.RISKY),
    (TestWarning, OutcomeKind.WARNING),
    (AssertionError, OutcomeKind.FAILURE),
)


def outcome_kind_for(error: BaseException) -> OutcomeKind:
    """Map an exception raised by test code onto an outcome kind."""
    for signal, kind in _SIGNAL_KINDS:
        if isinstance(error, signal):
            return kind
    return OutcomeKind.ERROR


class TestUnit(ABC):
    """Anything a suite can hold and a scheduler can run."""

    __test__ = False

    def __init__(self) -> None:
        self.groups: list[str] = []
        self.dependencies: list[str] = []
        self.flags = ExecutionFlags()

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Stable name used in reports."""
        pass

    @abstractmethod
    def run(self, ledger: "OutcomeLedger") -> Any:
        """Run the unit and record its outcome into the ledger."""
        pass

    def execute(self, scheduler: "Scheduler", ledger: "OutcomeLedger") -> None:
        """Entry point used by the scheduler. Leaves simply run."""
        self.run(ledger)

    def count(self, prefer_cache: bool = False) -> int:
        """Number of leaves in this unit."""
        return 1

    def leaves(self) -> Iterator["TestUnit"]:
        yield self

    def attach_to(self, suite: Any) -> None:
        """Called when the unit is added to ``suite``. Leaves keep no link."""
        pass

    def report_aborted(self, ledger: "OutcomeLedger", kind: OutcomeKind, error: Exception) -> None:
        """Record ``kind`` for this unit without running it."""
        ledger.start_test(self)
        ledger.add_outcome(self, kind, error, 0.0)
        ledger.end_test(self, 0.0)

    def get_groups(self) -> list[str]:
        return list(self.groups)

    def set_groups(self, groups: list[str]) -> None:
        self.groups = list(groups)

    def set_dependencies(self, dependencies: list[str]) -> None:
        self.dependencies = list(dependencies)

    def __str__(self) -> str:
        return self.display_name


class TestCase(TestUnit):
    """Base class for user test classes.

    Every public method whose name starts with ``test`` (or that is marked
    with ``@test``) becomes one instance of the class, created with the
    method name. Override ``set_up``/``tear_down`` for per-test fixtures and
    ``set_up_before_class``/``tear_down_after_class`` for class fixtures.
    """

    def __init__(self, name: str = ""):
        super().__init__()
        self.name = name
        self.num_assertions = 0

    @property
    def display_name(self) -> str:
        return f"{type(self).__qualname__}::{self.name}"

    @classmethod
    def set_up_before_class(cls) -> None:
        pass

    @classmethod
    def tear_down_after_class(cls) -> None:
        pass

    def set_up(self) -> None:
        pass

    def tear_down(self) -> None:
        pass

    def run(self, ledger: "OutcomeLedger") -> None:
        """Run the test method between set_up and tear_down."""
        ledger.start_test(self)
        start = time.perf_counter()

        error = self._run_bare()

        elapsed = time.perf_counter() - start
        if self.num_assertions:
            ledger.add_assertions(self.num_assertions)
        if error is not None:
            ledger.add_outcome(self, outcome_kind_for(error), error, elapsed)
        ledger.end_test(self, elapsed)

    def _run_bare(self) -> Optional[Exception]:
        """Run set_up, the test and tear_down.

        Returns:
            The first exception raised. A tear_down error is only returned
            when set_up and the test itself raised nothing.
        """
        error: Optional[Exception] = None
        try:
            self.set_up()
            self.run_test()
        except Exception as e:
            error = e

        try:
            self.tear_down()
        except Exception as e:
            if error is None:
                error = e
        return error

    def run_test(self) -> None:
        method = getattr(self, self.name, None) if self.name else None
        if not callable(method):
            raise SuiteRunnerError(f'Method "{self.name}" does not exist.')
        method()

    def add_to_assertion_count(self, count: int) -> None:
        self.num_assertions += count

    def assert_that(self, condition: Any, message: str = "") -> None:
        """Count one assertion and fail unless ``condition`` is truthy."""
        self.num_assertions += 1
        if not condition:
            raise AssertionFailedError(message or "Failed asserting that condition is true.")

    def assert_equal(self, expected: Any, actual: Any, message: str = "") -> None:
        self.num_assertions += 1
        if expected != actual:
            raise AssertionFailedError(
                message or f"Failed asserting that {actual!r} matches expected {expected!r}."
            )

    def skip(self, message: str = "") -> None:
        raise SkipTest(message)

    def mark_incomplete(self, message: str = "") -> None:
        raise IncompleteTest(message)

    def mark_risky(self, message: str = "") -> None:
        raise RiskyTest(message)


class _SentinelUnit(TestUnit):
    """A leaf that reports a fixed outcome without running anything."""

    kind = OutcomeKind.WARNING

    def __init__(self, message: str):
        super().__init__()
        self.message = message

    def _make_error(self) -> Exception:
        return TestWarning(self.message)

    def run(self, ledger: "OutcomeLedger") -> None:
        ledger.start_test(self)
        ledger.add_outcome(self, self.kind, self._make_error(), 0.0)
        ledger.end_test(self, 0.0)


class WarningUnit(_SentinelUnit):
    """Stands in for tests that could not be built, so no suite is silently empty."""

    @property
    def display_name(self) -> str:
        return "Warning"


class SkippedUnit(_SentinelUnit):
    """Stands in for a test method whose requirements are not met."""

    kind = OutcomeKind.SKIPPED

    def __init__(self, class_name: str, method_name: str, message: str):
        super().__init__(message)
        self.class_name = class_name
        self.method_name = method_name

    @property
    def display_name(self) -> str:
        return f"{self.class_name}::{self.method_name}"

    def _make_error(self) -> Exception:
        return SkipTest(self.message)
