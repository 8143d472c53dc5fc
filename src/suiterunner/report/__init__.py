"""Result reporting."""

from suiterunner.report.printer import ResultPrinter
from suiterunner.report.speedtrap import SlowTestListener

__all__ = ["ResultPrinter", "SlowTestListener"]
