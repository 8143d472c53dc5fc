"""Test metadata: decorators and class descriptors.

Test classes declare their groups, dependencies, hooks and requirements with
the decorators in this module. ``describe_class`` turns a decorated class into
a plain ``ClassDescriptor`` which is all the suite and the hook coordinator
ever look at.
"""

import importlib.util
import inspect
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from suiterunner.core.models import ExecutionFlags

META_ATTRIBUTE = "_suiterunner_meta"

BEFORE_CLASS = "before_class"
AFTER_CLASS = "after_class"

# Template hooks every TestCase provides.
SET_UP_BEFORE_CLASS = "set_up_before_class"
TEAR_DOWN_AFTER_CLASS = "tear_down_after_class"


def _target(obj: Any) -> Any:
    if isinstance(obj, (classmethod, staticmethod)):
        return obj.__func__
    return obj


def _get_meta(obj: Any) -> dict[str, Any]:
    # Only the object's own namespace, so subclasses never share a parent's dict.
    return getattr(_target(obj), "__dict__", {}).get(META_ATTRIBUTE, {})


def _update_meta(obj: Any, **values: Any) -> Any:
    target = _target(obj)
    meta = dict(target.__dict__.get(META_ATTRIBUTE, {}))
    for key, value in values.items():
        if isinstance(value, list):
            meta[key] = meta.get(key, []) + value
        else:
            meta[key] = value
    setattr(target, META_ATTRIBUTE, meta)
    return obj


def test(func: Callable) -> Callable:
    """Mark a method as a test even though its name does not start with ``test``."""
    return _update_meta(func, test=True)


test.__test__ = False


def group(*names: str) -> Callable:
    """Put a test method, or every test of a class, into the given groups."""

    def decorator(obj: Any) -> Any:
        return _update_meta(obj, groups=list(names))

    return decorator


def depends(*names: str) -> Callable:
    """Declare the tests a test method depends on."""

    def decorator(func: Callable) -> Callable:
        return _update_meta(func, depends=list(names))

    return decorator


def _hook(kind: str, func: Any) -> classmethod | staticmethod:
    if not isinstance(func, (classmethod, staticmethod)):
        func = classmethod(func)
    _update_meta(func, hook=kind)
    return func


def before_class(func: Any) -> classmethod | staticmethod:
    """Run the decorated method once before the tests of its class.

    Plain functions are turned into class methods.
    """
    return _hook(BEFORE_CLASS, func)


def after_class(func: Any) -> classmethod | staticmethod:
    """Run the decorated method once after the tests of its class."""
    return _hook(AFTER_CLASS, func)


def requires(*modules: str) -> Callable:
    """Require importable modules for a test, hook or class."""

    def decorator(obj: Any) -> Any:
        return _update_meta(obj, requires=[("module", name) for name in modules])

    return decorator


def requires_python(version: str) -> Callable:
    """Require a minimum Python version, e.g. ``"3.11"``."""

    def decorator(obj: Any) -> Any:
        return _update_meta(obj, requires=[("python", version)])

    return decorator


def isolation(
    separate_process: Optional[bool] = None,
    preserve_global_state: Optional[bool] = None,
    backup_globals: Optional[bool] = None,
    backup_static_attributes: Optional[bool] = None,
) -> Callable:
    """Set execution flags on a test method or a whole class."""
    flags = {
        "run_in_separate_process": separate_process,
        "preserve_global_state": preserve_global_state,
        "backup_globals": backup_globals,
        "backup_static_attributes": backup_static_attributes,
    }

    def decorator(obj: Any) -> Any:
        merged = dict(_get_meta(obj).get("flags", {}))
        merged.update({k: v for k, v in flags.items() if v is not None})
        return _update_meta(obj, flags=merged)

    return decorator


@dataclass
class MethodDescriptor:
    """Everything known about one test method."""

    name: str
    groups: list[str] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)
    flags: ExecutionFlags = field(default_factory=ExecutionFlags)
    missing_requirements: list[str] = field(default_factory=list)

    @property
    def public(self) -> bool:
        return not self.name.startswith("_")


@dataclass
class ClassDescriptor:
    """Capability descriptor of a test class."""

    cls: type
    name: str
    test_methods: list[MethodDescriptor] = field(default_factory=list)
    before_class: list[str] = field(default_factory=list)
    after_class: list[str] = field(default_factory=list)
    hook_requirements: dict[str, list[str]] = field(default_factory=dict)
    missing_requirements: list[str] = field(default_factory=list)
    flags: ExecutionFlags = field(default_factory=ExecutionFlags)
    abstract: bool = False
    constructible: bool = True

    def missing_requirements_for(self, hook: str) -> list[str]:
        """Return the unmet requirements of a hook, empty if none."""
        return self.hook_requirements.get(hook, [])


def _missing_requirements(meta: dict[str, Any]) -> list[str]:
    missing = []
    for kind, value in meta.get("requires", []):
        if kind == "module":
            try:
                found = importlib.util.find_spec(value) is not None
            except ModuleNotFoundError:
                found = False
            if not found:
                missing.append(f'Module "{value}" is required.')
        elif kind == "python":
            wanted = tuple(int(part) for part in value.split("."))
            if sys.version_info[: len(wanted)] < wanted:
                missing.append(f"Python >= {value} is required.")
    return missing


def _flags_from(meta: dict[str, Any]) -> ExecutionFlags:
    return ExecutionFlags(**meta.get("flags", {}))


def _is_constructible(cls: type) -> bool:
    try:
        inspect.signature(cls).bind("test")
    except TypeError:
        return False
    except ValueError:
        # No introspectable signature, assume the default constructor.
        return True
    return True


def _unique(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))


def is_test_method(name: str, attr: Any) -> bool:
    """Tell whether a class attribute is a test method."""
    if not inspect.isfunction(attr):
        return False
    if _get_meta(attr).get("hook"):
        return False
    return name.startswith("test") or bool(_get_meta(attr).get("test"))


def describe_class(cls: type) -> ClassDescriptor:
    """Build the descriptor of a test class from its decorators."""
    class_meta: dict[str, Any] = {}
    for klass in reversed(cls.__mro__):
        meta = _get_meta(klass)
        class_meta["groups"] = class_meta.get("groups", []) + meta.get("groups", [])
        class_meta["requires"] = class_meta.get("requires", []) + meta.get("requires", [])
        class_meta.setdefault("flags", {}).update(meta.get("flags", {}))

    class_flags = _flags_from(class_meta)

    # Declaration order, base classes first.
    names: list[str] = []
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        for name in vars(klass):
            if name not in names:
                names.append(name)

    descriptor = ClassDescriptor(
        cls=cls,
        name=cls.__qualname__,
        missing_requirements=_missing_requirements(class_meta),
        flags=class_flags,
        abstract=inspect.isabstract(cls),
        constructible=_is_constructible(cls),
    )

    if hasattr(cls, SET_UP_BEFORE_CLASS):
        descriptor.before_class.append(SET_UP_BEFORE_CLASS)

    for name in names:
        attr = inspect.getattr_static(cls, name)
        meta = _get_meta(attr)
        hook = meta.get("hook")

        if hook == BEFORE_CLASS and name not in descriptor.before_class:
            descriptor.before_class.append(name)
        elif hook == AFTER_CLASS and name not in descriptor.after_class:
            descriptor.after_class.append(name)
        elif is_test_method(name, attr):
            flags = _flags_from(meta)
            flags.inherit(class_flags)
            descriptor.test_methods.append(
                MethodDescriptor(
                    name=name,
                    groups=_unique(class_meta["groups"] + meta.get("groups", [])),
                    dependencies=_unique(meta.get("depends", [])),
                    flags=flags,
                    missing_requirements=_missing_requirements(meta),
                )
            )
            continue
        else:
            continue

        missing = _missing_requirements(meta)
        if missing:
            descriptor.hook_requirements[name] = missing

    if hasattr(cls, TEAR_DOWN_AFTER_CLASS) and TEAR_DOWN_AFTER_CLASS not in descriptor.after_class:
        descriptor.after_class.append(TEAR_DOWN_AFTER_CLASS)

    return descriptor
