"""Exceptions raised by test code, fixtures and the outcome ledger."""


class SuiteRunnerError(Exception):
    """Base class for all suiterunner errors."""

    pass


class SkipTest(SuiteRunnerError):
    """Raised inside a test or fixture to skip it."""

    pass


class IncompleteTest(SuiteRunnerError):
    """Raised inside a test that is not fully implemented yet."""

    pass


class RiskyTest(SuiteRunnerError):
    """Raised inside a test whose result cannot be trusted."""

    pass


class TestWarning(SuiteRunnerError):
    """Raised inside a test to report a warning instead of a pass."""

    __test__ = False


class AssertionFailedError(AssertionError):
    """Raised by the assertion helpers of TestCase."""

    pass


class SkippedFixture(SuiteRunnerError):
    """Suite setup or a before-class hook asked to skip the whole suite."""

    pass


class BrokenFixture(SuiteRunnerError):
    """Suite setup or a before-class hook raised an error."""

    def __init__(self, message: str, hook: str = ""):
        super().__init__(message)
        self.hook = hook


class NonInstantiableUnit(SuiteRunnerError):
    """Raised when an abstract or non-instantiable unit is added to a suite."""

    pass


class LedgerError(SuiteRunnerError):
    """Internal consistency violation in the outcome ledger. Always fatal."""

    pass


class DuplicateOutcomeError(LedgerError):
    """A unit reported a second, different terminal outcome."""

    pass


class LedgerConsistencyError(LedgerError):
    """Start/end events for a unit arrived out of order."""

    pass


class LedgerFrozenError(LedgerError):
    """The ledger was mutated after its run finished."""

    pass
