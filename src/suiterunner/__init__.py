"""
suiterunner - a test suite execution engine.

This package provides tools to:
- Build suites of test cases from decorated test classes
- Run class fixtures around concurrently executing tests
- Collect every outcome into a thread-safe ledger
- Report progress, defects and slow tests
"""

__version__ = "0.1.0"

from suiterunner.core.errors import (
    AssertionFailedError,
    IncompleteTest,
    RiskyTest,
    SkipTest,
    TestWarning,
)
from suiterunner.core.ledger import OutcomeLedger, TestListener
from suiterunner.core.metadata import (
    after_class,
    before_class,
    depends,
    group,
    isolation,
    requires,
    requires_python,
)
from suiterunner.core.models import OutcomeKind
from suiterunner.core.runner import TestRunner
from suiterunner.core.scheduler import Scheduler
from suiterunner.core.suite import TestSuite
from suiterunner.core.units import TestCase

__all__ = [
    "AssertionFailedError",
    "IncompleteTest",
    "OutcomeKind",
    "OutcomeLedger",
    "RiskyTest",
    "Scheduler",
    "SkipTest",
    "TestCase",
    "TestListener",
    "TestRunner",
    "TestSuite",
    "TestWarning",
    "after_class",
    "before_class",
    "depends",
    "group",
    "isolation",
    "requires",
    "requires_python",
]
