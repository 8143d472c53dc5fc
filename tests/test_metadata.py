"""Tests for test metadata decorators and class descriptors."""

from abc import abstractmethod

from suiterunner.core import metadata
from suiterunner.core.metadata import (
    after_class,
    before_class,
    depends,
    describe_class,
    group,
    is_test_method,
    isolation,
    requires,
    requires_python,
)
from suiterunner.core.units import TestCase


class DecoratedCase(TestCase):
    @before_class
    def open_db(cls):
        pass

    @after_class
    def close_db(cls):
        pass

    @group("slow", "db")
    def test_query(self):
        pass

    @depends("test_query")
    def test_update(self):
        pass

    @metadata.test
    def verifies_something(self):
        pass

    def helper(self):
        pass

    @requires("suiterunner_module_that_does_not_exist")
    def test_needs_module(self):
        pass

    @requires_python("99.0")
    def test_needs_future_python(self):
        pass

    @isolation(separate_process=True)
    def test_isolated(self):
        pass


@group("integration")
@isolation(backup_globals=True)
class GroupedCase(TestCase):
    @group("fast")
    def test_a(self):
        pass

    def test_b(self):
        pass


class ChildCase(DecoratedCase):
    def test_child(self):
        pass


@requires("suiterunner_module_that_does_not_exist")
class NeedsModuleCase(TestCase):
    def test_a(self):
        pass


class HookRequirementCase(TestCase):
    @before_class
    @requires("suiterunner_module_that_does_not_exist")
    def needs_module(cls):
        pass

    def test_a(self):
        pass


class ExtraArgumentCase(TestCase):
    def __init__(self, name, connection):
        super().__init__(name)
        self.connection = connection

    def test_a(self):
        pass


class AbstractCase(TestCase):
    @abstractmethod
    def make_fixture(self):
        pass

    def test_a(self):
        pass


def method(descriptor, name):
    return next(m for m in descriptor.test_methods if m.name == name)


class TestDecorators:
    """Tests for the metadata decorators."""

    def test_hooks_become_class_methods(self):
        """Test hook decorators wrap plain functions as class methods."""
        assert isinstance(DecoratedCase.__dict__["open_db"], classmethod)
        assert isinstance(DecoratedCase.__dict__["close_db"], classmethod)

    def test_hooks_are_not_test_methods(self):
        """Test hooks are excluded even if their name starts with test."""

        @before_class
        def test_looking_hook(cls):
            pass

        assert not is_test_method("test_looking_hook", test_looking_hook.__func__)

    def test_is_test_method(self):
        """Test name prefix and the test marker both select methods."""

        def test_by_name(self):
            pass

        def by_marker(self):
            pass

        def plain(self):
            pass

        assert is_test_method("test_by_name", test_by_name)
        assert is_test_method("by_marker", metadata.test(by_marker))
        assert not is_test_method("plain", plain)
        assert not is_test_method("test_value", 42)


class TestDescribeClass:
    """Tests for describe_class."""

    def test_test_methods_in_declaration_order(self):
        """Test test methods are collected in declaration order."""
        descriptor = describe_class(DecoratedCase)

        assert [m.name for m in descriptor.test_methods] == [
            "test_query",
            "test_update",
            "verifies_something",
            "test_needs_module",
            "test_needs_future_python",
            "test_isolated",
        ]

    def test_hook_order(self):
        """Test template hooks bracket the decorated hooks."""
        descriptor = describe_class(DecoratedCase)

        assert descriptor.before_class == ["set_up_before_class", "open_db"]
        assert descriptor.after_class == ["close_db", "tear_down_after_class"]

    def test_groups_and_dependencies(self):
        """Test groups and dependencies reach the method descriptors."""
        descriptor = describe_class(DecoratedCase)

        assert method(descriptor, "test_query").groups == ["slow", "db"]
        assert method(descriptor, "test_update").dependencies == ["test_query"]
        assert method(descriptor, "test_update").groups == []

    def test_missing_requirements(self):
        """Test unmet requirements are described per method."""
        descriptor = describe_class(DecoratedCase)

        assert method(descriptor, "test_needs_module").missing_requirements == [
            'Module "suiterunner_module_that_does_not_exist" is required.'
        ]
        assert method(descriptor, "test_needs_future_python").missing_requirements == [
            "Python >= 99.0 is required."
        ]
        assert method(descriptor, "test_query").missing_requirements == []

    def test_method_flags(self):
        """Test isolation flags land on the decorated method only."""
        descriptor = describe_class(DecoratedCase)

        assert method(descriptor, "test_isolated").flags.run_in_separate_process is True
        assert method(descriptor, "test_query").flags.run_in_separate_process is None

    def test_class_groups_and_flags(self):
        """Test class decorators apply to every test method."""
        descriptor = describe_class(GroupedCase)

        assert method(descriptor, "test_a").groups == ["integration", "fast"]
        assert method(descriptor, "test_b").groups == ["integration"]
        assert descriptor.flags.backup_globals is True
        assert method(descriptor, "test_b").flags.backup_globals is True

    def test_inherited_methods_and_hooks(self):
        """Test subclasses see their bases' tests and hooks first."""
        descriptor = describe_class(ChildCase)

        names = [m.name for m in descriptor.test_methods]
        assert names[0] == "test_query"
        assert names[-1] == "test_child"
        assert descriptor.before_class == ["set_up_before_class", "open_db"]

    def test_class_requirements(self):
        """Test class-level requirements are reported on the class."""
        descriptor = describe_class(NeedsModuleCase)

        assert descriptor.missing_requirements == [
            'Module "suiterunner_module_that_does_not_exist" is required.'
        ]

    def test_hook_requirements(self):
        """Test hook requirements are reported per hook."""
        descriptor = describe_class(HookRequirementCase)

        assert "needs_module" in descriptor.before_class
        assert descriptor.missing_requirements_for("needs_module") == [
            'Module "suiterunner_module_that_does_not_exist" is required.'
        ]
        assert descriptor.missing_requirements_for("set_up_before_class") == []

    def test_constructible(self):
        """Test classes needing more than the test name are not constructible."""
        assert describe_class(DecoratedCase).constructible
        assert not describe_class(ExtraArgumentCase).constructible

    def test_abstract(self):
        """Test abstract test classes are flagged."""
        assert describe_class(AbstractCase).abstract
        assert not describe_class(DecoratedCase).abstract

    def test_private_marked_method_is_collected(self):
        """Test a non-public method marked as a test is still described."""

        class PrivateCase(TestCase):
            @metadata.test
            def _hidden(self):
                pass

        descriptor = describe_class(PrivateCase)

        assert [m.name for m in descriptor.test_methods] == ["_hidden"]
        assert not descriptor.test_methods[0].public
