"""Core suite execution functionality."""

from suiterunner.core.ledger import OutcomeLedger
from suiterunner.core.scheduler import Scheduler
from suiterunner.core.suite import TestSuite

__all__ = ["OutcomeLedger", "Scheduler", "TestSuite"]
