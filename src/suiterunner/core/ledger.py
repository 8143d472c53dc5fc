"""Outcome ledger: the shared sink for test outcomes and counters."""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Optional

from suiterunner.core.errors import (
    DuplicateOutcomeError,
    LedgerConsistencyError,
    LedgerFrozenError,
)
from suiterunner.core.models import Outcome, OutcomeKind

logger = logging.getLogger(__name__)


class TestListener:
    """Receives ledger events as they happen.

    All callbacks are no-ops; subclasses override what they need. The ledger
    never calls two callbacks at the same time.
    """

    __test__ = False

    def start_test_suite(self, suite: Any) -> None:
        pass

    def end_test_suite(self, suite: Any) -> None:
        pass

    def start_test(self, unit: Any) -> None:
        pass

    def add_outcome(self, outcome: Outcome) -> None:
        pass

    def end_test(self, unit: Any, elapsed: float) -> None:
        pass


@dataclass
class FixtureError:
    """An error raised by an after-class hook or a suite teardown."""

    suite_name: str
    hook: str
    error: BaseException

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "suite": self.suite_name,
            "hook": self.hook,
            "exception": type(self.error).__name__,
            "message": str(self.error),
        }


class _UnitRecord:
    __slots__ = ("unit", "started", "ended", "outcome")

    def __init__(self, unit: Any) -> None:
        # Holding the unit keeps its id() from being reused during the run.
        self.unit = unit
        self.started = False
        self.ended = False
        self.outcome: Optional[Outcome] = None


class OutcomeLedger:
    """Collects the outcome of every unit of one run.

    Every mutating method takes the same lock, so the ledger can be shared by
    any number of concurrently running tests. Once ``freeze`` is called the
    ledger is read-only.
    """

    def __init__(
        self,
        stop_on_error: bool = False,
        stop_on_failure: bool = False,
        stop_on_warning: bool = False,
    ):
        """Initialize an empty ledger.

        Args:
            stop_on_error: Request a stop when the first error is recorded
            stop_on_failure: Request a stop when the first failure is recorded
            stop_on_warning: Request a stop when the first warning is recorded
        """
        self.stop_on_error = stop_on_error
        self.stop_on_failure = stop_on_failure
        self.stop_on_warning = stop_on_warning

        self._lock = threading.RLock()
        self._records: dict[int, _UnitRecord] = {}
        self._outcomes: list[Outcome] = []
        self._counts = {kind: 0 for kind in OutcomeKind}
        self._fixture_errors: list[FixtureError] = []
        self._listeners: list[TestListener] = []
        self._run_count = 0
        self._assertion_count = 0
        self._stop = False
        self._frozen = False

    # Listeners

    def add_listener(self, listener: TestListener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: TestListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _notify(self, event: str, *args: Any) -> None:
        for listener in self._listeners:
            getattr(listener, event)(*args)

    # Events

    def start_test_suite(self, suite: Any) -> None:
        with self._lock:
            self._check_mutable()
            self._notify("start_test_suite", suite)

    def end_test_suite(self, suite: Any) -> None:
        with self._lock:
            self._check_mutable()
            self._notify("end_test_suite", suite)

    def start_test(self, unit: Any) -> None:
        """Mark the start of a unit's execution."""
        with self._lock:
            self._check_mutable()
            record = self._records.setdefault(id(unit), _UnitRecord(unit))
            if record.started:
                raise LedgerConsistencyError(f"Test {unit} was started twice")
            record.started = True
            self._notify("start_test", unit)

    def add_outcome(
        self,
        unit: Any,
        kind: OutcomeKind,
        detail: Optional[BaseException] = None,
        elapsed: float = 0.0,
    ) -> None:
        """Record the terminal outcome of a unit.

        Raises:
            DuplicateOutcomeError: If the unit already has a different outcome
        """
        with self._lock:
            self._check_mutable()
            record = self._records.setdefault(id(unit), _UnitRecord(unit))

            if record.outcome is not None:
                if record.outcome.kind == kind:
                    logger.debug("Ignoring repeated %s outcome for %s", kind.value, unit)
                    return
                logger.error(
                    "Test %s reported %s after %s",
                    unit,
                    kind.value,
                    record.outcome.kind.value,
                )
                raise DuplicateOutcomeError(
                    f"Test {unit} already has outcome {record.outcome.kind.value}, "
                    f"cannot record {kind.value}"
                )

            outcome = Outcome(unit=unit, kind=kind, detail=detail, elapsed=elapsed)
            record.outcome = outcome
            self._outcomes.append(outcome)
            self._counts[kind] += 1

            if (
                (kind == OutcomeKind.ERROR and self.stop_on_error)
                or (kind == OutcomeKind.FAILURE and self.stop_on_failure)
                or (kind == OutcomeKind.WARNING and self.stop_on_warning)
            ):
                self._stop = True

            self._notify("add_outcome", outcome)

    def end_test(self, unit: Any, elapsed: float) -> None:
        """Mark the end of a unit's execution.

        A unit that ends without an outcome has passed.

        Raises:
            LedgerConsistencyError: If the unit was not started or already ended
        """
        with self._lock:
            self._check_mutable()
            record = self._records.get(id(unit))
            if record is None or not record.started or record.ended:
                raise LedgerConsistencyError(
                    f"Test {unit} ended without a matching start"
                )

            if record.outcome is None:
                self.add_outcome(unit, OutcomeKind.PASSED, None, elapsed)

            record.ended = True
            self._run_count += 1
            self._notify("end_test", unit, elapsed)

    def add_assertions(self, count: int) -> None:
        with self._lock:
            self._check_mutable()
            self._assertion_count += count

    def add_fixture_error(self, suite: Any, hook: str, error: BaseException) -> None:
        """Report an after-class or teardown error without touching outcomes."""
        with self._lock:
            self._check_mutable()
            self._fixture_errors.append(
                FixtureError(suite_name=getattr(suite, "name", str(suite)), hook=hook, error=error)
            )

    # Unit state, used to finish units that crashed halfway through

    def is_started(self, unit: Any) -> bool:
        with self._lock:
            record = self._records.get(id(unit))
            return record is not None and record.started

    def is_ended(self, unit: Any) -> bool:
        with self._lock:
            record = self._records.get(id(unit))
            return record is not None and record.ended

    def outcome_of(self, unit: Any) -> Optional[Outcome]:
        with self._lock:
            record = self._records.get(id(unit))
            return record.outcome if record is not None else None

    # Stop requests

    def stop(self) -> None:
        """Ask the scheduler not to dispatch any more units."""
        with self._lock:
            self._stop = True

    def should_stop(self) -> bool:
        with self._lock:
            return self._stop

    # Freezing

    def freeze(self) -> None:
        with self._lock:
            self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def _check_mutable(self) -> None:
        if self._frozen:
            raise LedgerFrozenError("The ledger is frozen; its run has finished")

    # Snapshots

    @property
    def run_count(self) -> int:
        with self._lock:
            return self._run_count

    @property
    def assertion_count(self) -> int:
        with self._lock:
            return self._assertion_count

    def __len__(self) -> int:
        return self.run_count

    def count_of(self, kind: OutcomeKind) -> int:
        with self._lock:
            return self._counts[kind]

    def outcomes(self, kind: Optional[OutcomeKind] = None) -> list[Outcome]:
        """Outcomes in the order they were recorded, optionally of one kind."""
        with self._lock:
            if kind is None:
                return list(self._outcomes)
            return [o for o in self._outcomes if o.kind == kind]

    def passed(self) -> list[Outcome]:
        return self.outcomes(OutcomeKind.PASSED)

    def errors(self) -> list[Outcome]:
        return self.outcomes(OutcomeKind.ERROR)

    def failures(self) -> list[Outcome]:
        return self.outcomes(OutcomeKind.FAILURE)

    def warnings(self) -> list[Outcome]:
        return self.outcomes(OutcomeKind.WARNING)

    def skipped(self) -> list[Outcome]:
        return self.outcomes(OutcomeKind.SKIPPED)

    def incomplete(self) -> list[Outcome]:
        return self.outcomes(OutcomeKind.INCOMPLETE)

    def risky(self) -> list[Outcome]:
        return self.outcomes(OutcomeKind.RISKY)

    def fixture_errors(self) -> list[FixtureError]:
        with self._lock:
            return list(self._fixture_errors)

    def was_successful(self) -> bool:
        """True when there are no errors, failures or warnings."""
        with self._lock:
            return (
                self._counts[OutcomeKind.ERROR] == 0
                and self._counts[OutcomeKind.FAILURE] == 0
                and self._counts[OutcomeKind.WARNING] == 0
            )

    def all_harmless(self) -> bool:
        return self.count_of(OutcomeKind.RISKY) == 0

    def all_completely_implemented(self) -> bool:
        return self.count_of(OutcomeKind.INCOMPLETE) == 0

    def none_skipped(self) -> bool:
        return self.count_of(OutcomeKind.SKIPPED) == 0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        with self._lock:
            return {
                "total": self._run_count,
                "assertions": self._assertion_count,
                "passed": self._counts[OutcomeKind.PASSED],
                "errors": self._counts[OutcomeKind.ERROR],
                "failures": self._counts[OutcomeKind.FAILURE],
                "warnings": self._counts[OutcomeKind.WARNING],
                "incomplete": self._counts[OutcomeKind.INCOMPLETE],
                "skipped": self._counts[OutcomeKind.SKIPPED],
                "risky": self._counts[OutcomeKind.RISKY],
                "successful": self.was_successful(),
                "outcomes": [o.to_dict() for o in self._outcomes],
                "fixture_errors": [e.to_dict() for e in self._fixture_errors],
            }
