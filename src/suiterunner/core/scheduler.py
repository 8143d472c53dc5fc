"""Scheduling of suite children, sequentially or on a thread pool."""

import logging
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import TYPE_CHECKING, Any, Optional

from suiterunner.core.errors import LedgerError
from suiterunner.core.hooks import HookCoordinator
from suiterunner.core.models import OutcomeKind

if TYPE_CHECKING:
    from suiterunner.core.ledger import OutcomeLedger

logger = logging.getLogger(__name__)


class Scheduler:
    """Runs suites and fans their children out to workers.

    Each direct child of a suite is one task; a nested suite runs its own
    children through its own ``dispatch`` call. ``dispatch`` returns only once
    every task it started has finished.
    """

    def __init__(self, parallel: bool = True, max_workers: Optional[int] = None):
        """Initialize the scheduler.

        Args:
            parallel: Run siblings concurrently on a thread pool
            max_workers: Pool size per suite (None = ThreadPoolExecutor default)
        """
        if max_workers is not None and max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.parallel = parallel
        self.max_workers = max_workers

    def run(self, suite: Any, ledger: "OutcomeLedger") -> None:
        """Run a suite and record every outcome into ``ledger``.

        An empty suite emits no events at all.
        """
        if suite.count() == 0:
            return

        logger.debug("Starting suite %s (%d tests)", suite.name, suite.count(prefer_cache=True))
        ledger.start_test_suite(suite)
        try:
            HookCoordinator(suite, self).run(ledger)
        finally:
            ledger.end_test_suite(suite)

    def dispatch(self, children: list[Any], ledger: "OutcomeLedger") -> None:
        """Run ``children`` and wait for all of them.

        Raises:
            LedgerError: If the ledger detected an inconsistency; raised only
                after every started task has finished
        """
        if not self.parallel or len(children) <= 1:
            self._dispatch_sequential(children, ledger)
        else:
            self._dispatch_parallel(children, ledger)

    def _dispatch_sequential(self, children: list[Any], ledger: "OutcomeLedger") -> None:
        for index, child in enumerate(children):
            if ledger.should_stop():
                logger.info("Stop requested, %d tests not dispatched", len(children) - index)
                break
            self._run_child(child, ledger)

    def _dispatch_parallel(self, children: list[Any], ledger: "OutcomeLedger") -> None:
        fatal: Optional[BaseException] = None

        # Leaving the with block joins every submitted task.
        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            futures: list[Future] = []
            for index, child in enumerate(children):
                if ledger.should_stop():
                    logger.info("Stop requested, %d tests not dispatched", len(children) - index)
                    break
                futures.append(pool.submit(self._run_child, child, ledger))

            for future in as_completed(futures):
                error = future.exception()
                if error is not None and fatal is None:
                    fatal = error

        if fatal is not None:
            raise fatal

    def _run_child(self, child: Any, ledger: "OutcomeLedger") -> None:
        # Queued tasks may start after a stop was requested.
        if ledger.should_stop():
            return
        try:
            child.execute(self, ledger)
        except LedgerError:
            raise
        except Exception as e:
            self._record_crash(child, ledger, e)

    def _record_crash(self, unit: Any, ledger: "OutcomeLedger", error: Exception) -> None:
        """Give every unfinished leaf of a unit whose run raised an error outcome."""
        logger.debug("Test %s raised out of its run: %r", unit, error)
        for leaf in unit.leaves():
            if ledger.is_ended(leaf):
                continue
            if not ledger.is_started(leaf):
                ledger.start_test(leaf)
            if ledger.outcome_of(leaf) is None:
                ledger.add_outcome(leaf, OutcomeKind.ERROR, error, 0.0)
            ledger.end_test(leaf, 0.0)
