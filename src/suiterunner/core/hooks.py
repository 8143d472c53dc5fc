"""Class-level fixture handling around the tests of one suite."""

import logging
from typing import TYPE_CHECKING, Any

from suiterunner.core.errors import BrokenFixture, SkippedFixture, SkipTest
from suiterunner.core.models import OutcomeKind, SuiteState

if TYPE_CHECKING:
    from suiterunner.core.ledger import OutcomeLedger
    from suiterunner.core.scheduler import Scheduler

logger = logging.getLogger(__name__)


class HookCoordinator:
    """Drives one run of a suite through its fixture states.

    INIT -> SETUP -> BEFORE_ALL -> DISPATCH -> AFTER_ALL -> TEARDOWN -> DONE

    When SETUP or BEFORE_ALL fails, every leaf of the suite is reported as
    skipped or errored without being run (ABORT_ALL_AS_FAILED) and the suite
    goes straight to TEARDOWN. Nested suites report their aborted leaves
    between their own suite start and end events. TEARDOWN runs on every exit
    path.
    """

    def __init__(self, suite: Any, scheduler: "Scheduler"):
        """Initialize the coordinator.

        Args:
            suite: The suite to run
            scheduler: Scheduler that dispatches the suite's children
        """
        self.suite = suite
        self.scheduler = scheduler
        self.state = SuiteState.INIT
        self.transitions: list[SuiteState] = [SuiteState.INIT]

        descriptor = getattr(suite, "descriptor", None)
        self.descriptor = descriptor
        self.before_class_hooks: list[str] = list(descriptor.before_class) if descriptor else []
        self.after_class_hooks: list[str] = list(descriptor.after_class) if descriptor else []

    def _enter(self, state: SuiteState) -> None:
        self.state = state
        self.transitions.append(state)

    def run(self, ledger: "OutcomeLedger") -> None:
        try:
            try:
                self._enter(SuiteState.SETUP)
                self._set_up()
                self._enter(SuiteState.BEFORE_ALL)
                self._run_before_class_hooks()
            except SkippedFixture as e:
                self._abort(ledger, OutcomeKind.SKIPPED, e)
                return
            except BrokenFixture as e:
                self._abort(ledger, OutcomeKind.ERROR, e)
                return

            self._enter(SuiteState.DISPATCH)
            self.suite.propagate_flags()
            self.scheduler.dispatch(list(self.suite), ledger)

            self._enter(SuiteState.AFTER_ALL)
            self._run_after_class_hooks(ledger)
        finally:
            self._enter(SuiteState.TEARDOWN)
            self._tear_down(ledger)
            self._enter(SuiteState.DONE)

    def _set_up(self) -> None:
        try:
            self.suite.set_up()
        except SkippedFixture:
            raise
        except SkipTest as e:
            raise SkippedFixture(str(e)) from e
        except Exception as e:
            raise BrokenFixture(f"set_up raised {type(e).__name__}: {e}", "set_up") from e

    def _run_before_class_hooks(self) -> None:
        if self.descriptor is None:
            return

        if self.descriptor.missing_requirements:
            raise SkippedFixture("\n".join(self.descriptor.missing_requirements))

        for name in self.before_class_hooks:
            missing = self.descriptor.missing_requirements_for(name)
            if missing:
                raise SkippedFixture("\n".join(missing))

            try:
                getattr(self.descriptor.cls, name)()
            except (SkippedFixture, SkipTest) as e:
                raise SkippedFixture(str(e)) from e
            except Exception as e:
                raise BrokenFixture(f"{name} raised {type(e).__name__}: {e}", name) from e

    def _abort(self, ledger: "OutcomeLedger", kind: OutcomeKind, error: Exception) -> None:
        self._enter(SuiteState.ABORT_ALL_AS_FAILED)
        logger.warning(
            "Suite %s aborted before running its tests (%s): %s",
            self.suite.name,
            kind.value,
            error,
        )
        # The suite itself is already bracketed by Scheduler.run.
        for test in self.suite:
            test.report_aborted(ledger, kind, error)

    def _run_after_class_hooks(self, ledger: "OutcomeLedger") -> None:
        if self.descriptor is None:
            return

        for name in self.after_class_hooks:
            try:
                getattr(self.descriptor.cls, name)()
            except Exception as e:
                logger.warning("After-class hook %s of %s raised: %s", name, self.suite.name, e)
                ledger.add_fixture_error(self.suite, name, e)

    def _tear_down(self, ledger: "OutcomeLedger") -> None:
        try:
            self.suite.tear_down()
        except Exception as e:
            logger.warning("tear_down of suite %s raised: %s", self.suite.name, e)
            ledger.add_fixture_error(self.suite, "tear_down", e)
