"""Top-level test run orchestration."""

import logging
import time
from typing import Any, Optional

from suiterunner.config import SuiteRunnerConfig, get_default_config
from suiterunner.core.ledger import OutcomeLedger, TestListener
from suiterunner.core.scheduler import Scheduler
from suiterunner.core.suite import TestSuite

logger = logging.getLogger(__name__)


class TestRunner:
    """Runs a suite tree with a fresh ledger per run."""

    __test__ = False

    def __init__(
        self,
        config: Optional[SuiteRunnerConfig] = None,
        listeners: Optional[list[TestListener]] = None,
    ):
        """Initialize the test runner.

        Args:
            config: Execution configuration (defaults apply when omitted)
            listeners: Listeners attached to every ledger this runner creates
        """
        self.config = config or get_default_config()
        self.listeners = list(listeners or [])
        self.scheduler = Scheduler(
            parallel=self.config.execution.parallel,
            max_workers=self.config.execution.max_workers,
        )
        self.duration_ms = 0

    def create_ledger(self) -> OutcomeLedger:
        execution = self.config.execution
        ledger = OutcomeLedger(
            stop_on_error=execution.stop_on_error,
            stop_on_failure=execution.stop_on_failure,
            stop_on_warning=execution.stop_on_warning,
        )
        for listener in self.listeners:
            ledger.add_listener(listener)
        return ledger

    def run(self, suite: TestSuite) -> OutcomeLedger:
        """Run ``suite`` to completion.

        Returns:
            The frozen ledger of the run

        Raises:
            LedgerError: If the run violated ledger consistency
        """
        ledger = self.create_ledger()
        start_time = time.time()

        try:
            self.scheduler.run(suite, ledger)
        finally:
            ledger.freeze()
            self.duration_ms = int((time.time() - start_time) * 1000)

        logger.debug(
            "Run of %s finished: %d tests, %d assertions in %dms",
            suite.name or "<anonymous>",
            ledger.run_count,
            ledger.assertion_count,
            self.duration_ms,
        )
        return ledger

    def run_classes(self, *test_classes: type) -> OutcomeLedger:
        """Run one suite per test class, grouped under an anonymous suite."""
        suite = TestSuite()
        for test_class in test_classes:
            suite.add_unit(TestSuite.from_class(test_class))
        return self.run(suite)

    def get_results(self, ledger: OutcomeLedger) -> dict[str, Any]:
        """Results of a run as a plain dictionary."""
        results = ledger.to_dict()
        results["duration_ms"] = self.duration_ms
        results["failed_tests"] = [
            o.to_dict() for o in ledger.errors() + ledger.failures()
        ]
        return results
