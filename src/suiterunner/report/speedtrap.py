"""Detection of slow tests."""

import logging
from typing import Any

from suiterunner.core.ledger import TestListener

logger = logging.getLogger(__name__)


class SlowTestListener(TestListener):
    """Collects tests that ran at or above a threshold.

    The report is built once the outermost suite ends, longest test first.
    """

    def __init__(self, slow_threshold_ms: int = 500, report_length: int = 10):
        """Initialize the listener.

        Args:
            slow_threshold_ms: Tests taking at least this long are slow
            report_length: Maximum number of slow tests listed in the report
        """
        self.slow_threshold_ms = slow_threshold_ms
        self.report_length = report_length
        self.report: list[str] = []
        self._slow: list[tuple[str, int]] = []
        self._suites = 0

    def start_test_suite(self, suite: Any) -> None:
        self._suites += 1

    def end_test(self, unit: Any, elapsed: float) -> None:
        milliseconds = int(round(elapsed * 1000))
        if milliseconds >= self.slow_threshold_ms:
            self._slow.append((unit.display_name, milliseconds))

    def end_test_suite(self, suite: Any) -> None:
        self._suites -= 1
        if self._suites == 0 and self._slow:
            self.report = self.render()
            logger.warning("\n".join(self.report))

    def slow_tests(self) -> list[tuple[str, int]]:
        """Slow tests as (name, milliseconds), slowest first."""
        return sorted(self._slow, key=lambda item: item[1], reverse=True)

    def render(self) -> list[str]:
        slow = self.slow_tests()
        shown = slow[: self.report_length]

        lines = [f"You should really fix these slow tests (>{self.slow_threshold_ms}ms)..."]
        for i, (name, milliseconds) in enumerate(shown, start=1):
            lines.append(f" {i}. {milliseconds}ms to run {name}")

        hidden = len(slow) - len(shown)
        if hidden:
            lines.append(
                f"...and there {'is' if hidden == 1 else 'are'} {hidden} more "
                "above your threshold hidden from view"
            )
        return lines
