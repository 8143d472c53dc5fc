"""Builds suites from importable targets given on the command line."""

import importlib
import importlib.util
import inspect
import sys
from pathlib import Path
from types import ModuleType

from suiterunner.core.suite import TestSuite
from suiterunner.core.units import TestCase


def _import(module_ref: str) -> ModuleType:
    if module_ref.endswith(".py"):
        path = Path(module_ref).resolve()
        if not path.exists():
            raise FileNotFoundError(f"Test file not found: {path}")
        spec = importlib.util.spec_from_file_location(path.stem, path)
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot import {path}")
        module = importlib.util.module_from_spec(spec)
        sys.modules[path.stem] = module
        spec.loader.exec_module(module)
        return module
    return importlib.import_module(module_ref)


def find_test_classes(module: ModuleType) -> list[type]:
    """Concrete TestCase subclasses defined in ``module``, in definition order."""
    return [
        obj
        for obj in vars(module).values()
        if inspect.isclass(obj)
        and issubclass(obj, TestCase)
        and obj.__module__ == module.__name__
        and not inspect.isabstract(obj)
    ]


def load_target(target: str) -> TestSuite:
    """Build a suite from ``module``, ``module:Class`` or ``path/to/file.py[:Class]``.

    Raises:
        ImportError: If the module cannot be imported
        ValueError: If the named class is not a TestCase subclass
    """
    module_ref, _, class_name = target.partition(":")
    module = _import(module_ref)

    if class_name:
        test_class = getattr(module, class_name, None)
        if not (inspect.isclass(test_class) and issubclass(test_class, TestCase)):
            raise ValueError(f"{target} is not a TestCase subclass")
        return TestSuite.from_class(test_class)

    suite = TestSuite(module.__name__)
    for test_class in find_test_classes(module):
        suite.add_unit(TestSuite.from_class(test_class))
    return suite


def load_targets(targets: list[str]) -> TestSuite:
    """Build one suite for all targets."""
    if len(targets) == 1:
        return load_target(targets[0])

    suite = TestSuite()
    for target in targets:
        suite.add_unit(load_target(target))
    return suite
