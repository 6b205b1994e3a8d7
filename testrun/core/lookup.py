"""
Static boolean property lookup used by dynamic skip.

A test opts into dynamic skipping by naming a public, class-level ("static"),
argument-free, bool-returning property. Lookup reports an explicit outcome
instead of raising, so callers can turn each failure mode into its own
error message.

Recognised shapes, on the class or any base class:

    class Env:
        @static_property
        def is_ci() -> bool: ...

        @staticmethod
        def has_gpu() -> bool: ...

        @classmethod
        def is_linux(cls) -> bool: ...

        VERBOSE = False

A ``property`` defined on the metaclass is also accepted.
"""

from __future__ import annotations

import functools
import inspect
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Protocol, runtime_checkable

_MISSING = object()


class LookupOutcome(str, Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    NOT_READABLE = "not_readable"
    WRONG_TYPE = "wrong_type"


@dataclass(frozen=True, slots=True)
class PropertyLookup:
    outcome: LookupOutcome
    getter: Optional[Callable[[], Any]] = None

    @property
    def found(self) -> bool:
        return self.outcome is LookupOutcome.FOUND


NOT_FOUND = PropertyLookup(LookupOutcome.NOT_FOUND)
NOT_READABLE = PropertyLookup(LookupOutcome.NOT_READABLE)
WRONG_TYPE = PropertyLookup(LookupOutcome.WRONG_TYPE)


@runtime_checkable
class PropertyResolver(Protocol):
    """Protocol for locating a static bool property on a type."""

    def find_static_bool_property(self, owner: type, name: str) -> PropertyLookup:
        ...


class static_property:
    """
    A read-only (or write-only) property evaluated on the class.

    The getter takes no arguments. A static_property built with only a
    setter cannot be read, and lookup reports it as NOT_READABLE.
    """

    def __init__(
        self,
        fget: Optional[Callable[[], Any]] = None,
        fset: Optional[Callable[[Any], None]] = None,
        doc: Optional[str] = None,
    ):
        self.fget = fget
        self.fset = fset
        self.__doc__ = doc if doc is not None else getattr(fget, "__doc__", None)
        self.name = getattr(fget, "__name__", "")

    def __set_name__(self, owner, name):
        self.name = name

    def __get__(self, instance, owner=None):
        if self.fget is None:
            raise AttributeError(f"static property '{self.name}' is not readable")
        return self.fget()

    def __set__(self, instance, value):
        if self.fset is None:
            raise AttributeError(f"static property '{self.name}' is read-only")
        self.fset(value)

    def getter(self, fget: Callable[[], Any]) -> "static_property":
        return type(self)(fget, self.fset, self.__doc__)

    def setter(self, fset: Callable[[Any], None]) -> "static_property":
        return type(self)(self.fget, fset, self.__doc__)


def _returns_bool(func: Callable) -> bool:
    """False only when a return annotation is present and is not bool."""
    annotation = getattr(func, "__annotations__", {}).get("return", _MISSING)
    if annotation is _MISSING:
        return True
    return annotation is bool or annotation == "bool"


def _requires_arguments(func: Callable, bound: int) -> bool:
    try:
        params = list(inspect.signature(func).parameters.values())[bound:]
    except (TypeError, ValueError):
        return False
    return any(
        p.default is p.empty
        and p.kind not in (p.VAR_POSITIONAL, p.VAR_KEYWORD)
        for p in params
    )


def _lookup_callable(func: Callable, *bound: Any) -> PropertyLookup:
    if _requires_arguments(func, len(bound)):
        return NOT_READABLE
    if not _returns_bool(func):
        return WRONG_TYPE
    getter = functools.partial(func, *bound) if bound else func
    return PropertyLookup(LookupOutcome.FOUND, getter)


def _defined_on_metaclass(owner: type, name: str, attr: Any) -> bool:
    return any(vars(k).get(name) is attr for k in type(owner).__mro__)


class ReflectionPropertyResolver:
    """Default resolver built on ``inspect.getattr_static``."""

    def find_static_bool_property(self, owner: type, name: str) -> PropertyLookup:
        if not name or name.startswith("_"):
            return NOT_FOUND

        try:
            attr = inspect.getattr_static(owner, name)
        except AttributeError:
            return NOT_FOUND

        if isinstance(attr, static_property):
            if attr.fget is None:
                return NOT_READABLE
            return _lookup_callable(attr.fget)

        if isinstance(attr, property):
            # Only a metaclass property can be read without an instance.
            if attr.fget is None or not _defined_on_metaclass(owner, name, attr):
                return NOT_READABLE
            if not _returns_bool(attr.fget):
                return WRONG_TYPE
            return PropertyLookup(LookupOutcome.FOUND, lambda: getattr(owner, name))

        if isinstance(attr, staticmethod):
            return _lookup_callable(attr.__func__)

        if isinstance(attr, classmethod):
            return _lookup_callable(attr.__func__, owner)

        if callable(attr):
            # A plain function on the class is an instance method.
            return NOT_READABLE

        if isinstance(attr, bool):
            return PropertyLookup(LookupOutcome.FOUND, lambda: getattr(owner, name))

        return WRONG_TYPE
