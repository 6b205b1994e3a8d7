"""Immutable identity types for a single test and its enclosing units."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional


class ExplicitOption(str, Enum):
    """How the user asked explicit tests to be treated."""

    OFF = "off"  # explicit tests are not run
    ON = "on"  # explicit tests run alongside everything else
    ONLY = "only"  # only explicit tests run


@dataclass(frozen=True, slots=True)
class TestAssembly:
    __test__ = False

    unique_id: str
    name: str = ""


@dataclass(frozen=True, slots=True)
class TestCollection:
    __test__ = False

    unique_id: str
    test_assembly: TestAssembly
    display_name: str = ""


@dataclass(frozen=True, slots=True)
class TestClass:
    __test__ = False

    unique_id: str
    cls: type

    @property
    def name(self) -> str:
        return self.cls.__qualname__


@dataclass(frozen=True, slots=True)
class TestMethod:
    """The method descriptor handed to lifecycle hooks."""

    __test__ = False

    unique_id: str
    method: Callable[..., Any]
    name: str = ""

    def __post_init__(self):
        if not self.name:
            object.__setattr__(
                self, "name", getattr(self.method, "__name__", "unknown")
            )


@dataclass(frozen=True, slots=True)
class TestCase:
    """
    A single test case as discovered.

    Attributes:
        skip_reason: Statically declared skip reason (None = not skipped)
        skip_unless: Name of a static bool property; skip when it is False
        skip_when: Name of a static bool property; skip when it is True
        skip_type: Class to search for the property (defaults to the test class)
    """

    __test__ = False

    unique_id: str
    test_collection: TestCollection
    test_class: Optional[TestClass] = None
    test_method: Optional[TestMethod] = None
    skip_reason: Optional[str] = None
    skip_unless: Optional[str] = None
    skip_when: Optional[str] = None
    skip_type: Optional[type] = None
    explicit: bool = False
    traits: dict[str, list[str]] = field(default_factory=dict)

    @property
    def test_assembly(self) -> TestAssembly:
        return self.test_collection.test_assembly

    @property
    def test_class_name(self) -> str:
        return self.test_class.name if self.test_class else ""

    @property
    def test_method_name(self) -> str:
        return self.test_method.name if self.test_method else ""


@dataclass(frozen=True, slots=True)
class Test:
    """The test descriptor handed to lifecycle hooks."""

    __test__ = False

    unique_id: str
    test_case: TestCase
    display_name: str = ""

    @property
    def test_method(self) -> Optional[TestMethod]:
        return self.test_case.test_method
