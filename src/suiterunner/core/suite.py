"""Test suites: ordered, grouped collections of test units."""

import dataclasses
import inspect
from typing import Iterator, Optional

from suiterunner.core.errors import NonInstantiableUnit, SkippedFixture
from suiterunner.core.ledger import OutcomeLedger
from suiterunner.core.metadata import ClassDescriptor, MethodDescriptor, describe_class
from suiterunner.core.models import OutcomeKind
from suiterunner.core.scheduler import Scheduler
from suiterunner.core.units import SkippedUnit, TestUnit, WarningUnit

DEFAULT_GROUP = "default"


class TestSuite(TestUnit):
    """A composite of test cases and nested suites.

    Children keep their insertion order. Every child belongs to at least one
    group; children added without groups land in ``"default"``. Units are never
    removed once added, and the suite must not be mutated while it is being
    iterated or run.
    """

    def __init__(self, name: str = "", descriptor: Optional[ClassDescriptor] = None):
        """Initialize a suite.

        Args:
            name: Suite name, may be empty for anonymous suites
            descriptor: Descriptor of the test class this suite was built from
        """
        super().__init__()
        self.name = name
        self.descriptor = descriptor
        self._tests: list[TestUnit] = []
        self._groups: dict[str, list[TestUnit]] = {}
        self._cached_count: Optional[int] = None
        self._parents: list["TestSuite"] = []

    @classmethod
    def from_class(cls, test_class: type) -> "TestSuite":
        """Build a suite holding one test per test method of ``test_class``."""
        suite = cls(test_class.__qualname__)
        suite.add_from_class(describe_class(test_class))
        return suite

    @property
    def display_name(self) -> str:
        return self.name

    def set_name(self, name: str) -> None:
        self.name = name

    def add_unit(self, unit: TestUnit, groups: Optional[list[str]] = None) -> None:
        """Add a test case or a nested suite.

        Args:
            unit: The unit to add
            groups: Groups to register the unit in; falls back to the unit's
                own groups, then to ``"default"``

        Raises:
            NonInstantiableUnit: If ``unit`` is a class or an abstract unit
        """
        if inspect.isclass(unit) or inspect.isabstract(type(unit)):
            raise NonInstantiableUnit(f'Cannot add non-instantiable unit "{unit!r}".')

        resolved = list(groups or [])
        if not resolved:
            resolved = unit.get_groups()
        if not resolved:
            resolved = [DEFAULT_GROUP]
        resolved = list(dict.fromkeys(resolved))

        self._tests.append(unit)
        unit.attach_to(self)
        self._invalidate_count()

        for name in resolved:
            self._groups.setdefault(name, []).append(unit)

        unit.set_groups(resolved)

    def add_from_class(self, descriptor: ClassDescriptor) -> None:
        """Add one test per test method described by ``descriptor``.

        A class that cannot be constructed, or that has no test methods,
        contributes a single WarningUnit instead.
        """
        self.descriptor = descriptor
        if not self.name:
            self.name = descriptor.name
        self.flags.inherit(descriptor.flags)

        if not descriptor.constructible:
            self.add_unit(
                WarningUnit(f'Class "{descriptor.name}" has no public constructor.')
            )
            return

        for method in descriptor.test_methods:
            self._add_test_method(descriptor, method)

        if not self._tests:
            self.add_unit(WarningUnit(f'No tests found in class "{descriptor.name}".'))

    def _add_test_method(self, descriptor: ClassDescriptor, method: MethodDescriptor) -> None:
        if not method.public:
            self.add_unit(
                WarningUnit(
                    f'Test method "{method.name}" in test class "{descriptor.name}" is not public.'
                )
            )
            return

        if method.missing_requirements:
            self.add_unit(
                SkippedUnit(descriptor.name, method.name, "\n".join(method.missing_requirements)),
                method.groups,
            )
            return

        try:
            self.add_unit(self.create_test(descriptor, method), method.groups)
        except NonInstantiableUnit as e:
            self.add_unit(WarningUnit(str(e)))

    @staticmethod
    def create_test(descriptor: ClassDescriptor, method: MethodDescriptor) -> TestUnit:
        """Instantiate the test class for one test method.

        Raises:
            NonInstantiableUnit: If the class is abstract
        """
        if descriptor.abstract:
            raise NonInstantiableUnit(f'Cannot instantiate class "{descriptor.name}".')

        test = descriptor.cls(method.name)
        test.set_dependencies(method.dependencies)
        test.flags = dataclasses.replace(method.flags)
        return test

    def count(self, prefer_cache: bool = False) -> int:
        """Number of leaves in the suite, nested suites included.

        Args:
            prefer_cache: Return the memoized count when there is one
        """
        if prefer_cache and self._cached_count is not None:
            return self._cached_count

        total = sum(test.count() for test in self._tests)
        self._cached_count = total
        return total

    def attach_to(self, suite: "TestSuite") -> None:
        self._parents.append(suite)

    def _invalidate_count(self) -> None:
        # Enclosing suites cache totals that include this suite.
        self._cached_count = None
        for parent in self._parents:
            parent._invalidate_count()

    def __iter__(self) -> Iterator[TestUnit]:
        return iter(self._tests)

    def leaves(self) -> Iterator[TestUnit]:
        for test in self._tests:
            yield from test.leaves()

    def tests(self) -> list[TestUnit]:
        return list(self._tests)

    def test_at(self, index: int) -> Optional[TestUnit]:
        if 0 <= index < len(self._tests):
            return self._tests[index]
        return None

    def set_tests(self, tests: list[TestUnit]) -> None:
        """Replace the children, keeping each unit's current groups."""
        self._tests = []
        self._groups = {}
        self._invalidate_count()
        for test in tests:
            self.add_unit(test, test.get_groups())

    def get_groups(self) -> list[str]:
        return list(self._groups)

    def get_group_details(self) -> dict[str, list[TestUnit]]:
        return {name: list(members) for name, members in self._groups.items()}

    def set_group_details(self, groups: dict[str, list[TestUnit]]) -> None:
        """Replace the group mapping.

        Raises:
            ValueError: If a member is not a child, or a child is in no group
        """
        members = {id(unit) for units in groups.values() for unit in units}
        children = {id(unit) for unit in self._tests}
        if not members <= children:
            raise ValueError("Every group member must be a test of this suite")
        if not children <= members:
            raise ValueError("Every test of this suite must belong to a group")
        self._groups = {name: list(units) for name, units in groups.items()}

    # Execution flags pass through to children whose own flag is unset.

    def set_run_in_separate_process(self, enabled: bool) -> None:
        if not isinstance(enabled, bool):
            raise TypeError("run_in_separate_process must be a boolean")
        self.flags.run_in_separate_process = enabled

    def set_backup_globals(self, enabled: bool) -> None:
        if self.flags.backup_globals is None and isinstance(enabled, bool):
            self.flags.backup_globals = enabled

    def set_backup_static_attributes(self, enabled: bool) -> None:
        if self.flags.backup_static_attributes is None and isinstance(enabled, bool):
            self.flags.backup_static_attributes = enabled

    def propagate_flags(self) -> None:
        for test in self._tests:
            test.flags.inherit(self.flags)

    # Template hooks

    def set_up(self) -> None:
        """Called before the tests of this suite run."""
        pass

    def tear_down(self) -> None:
        """Called after the tests of this suite ran, on every exit path."""
        pass

    def mark_suite_skipped(self, message: str = "") -> None:
        raise SkippedFixture(message)

    # Running

    def execute(self, scheduler: Scheduler, ledger: OutcomeLedger) -> None:
        scheduler.run(self, ledger)

    def report_aborted(self, ledger: OutcomeLedger, kind: OutcomeKind, error: Exception) -> None:
        """Record ``kind`` for every leaf, bracketed by this suite's events.

        Like ``Scheduler.run``, an empty suite emits nothing.
        """
        if self.count() == 0:
            return
        ledger.start_test_suite(self)
        try:
            for test in self._tests:
                test.report_aborted(ledger, kind, error)
        finally:
            ledger.end_test_suite(self)

    def run(
        self,
        ledger: Optional[OutcomeLedger] = None,
        scheduler: Optional[Scheduler] = None,
    ) -> OutcomeLedger:
        """Run the suite, creating a ledger and a scheduler when not given."""
        if ledger is None:
            ledger = OutcomeLedger()
        if scheduler is None:
            scheduler = Scheduler()
        scheduler.run(self, ledger)
        return ledger

    def __repr__(self) -> str:
        return f"TestSuite({self.name!r}, tests={len(self._tests)})"
