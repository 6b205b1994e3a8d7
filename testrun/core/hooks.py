"""
Before/after lifecycle hooks that wrap a single test.

Any object with ``before(method, test)`` and ``after(method, test)`` works;
both may be plain functions or coroutines. Hooks are run by
:class:`testrun.core.context.RunnerContext`.

Usage:
    class TempDirHook(BeforeAfterTestHook):
        async def before(self, method, test):
            self.path = tempfile.mkdtemp()

        async def after(self, method, test):
            shutil.rmtree(self.path)

    # Or, without subclassing
    hook = FunctionHook(before=open_db, after=close_db, name="db")
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Protocol, runtime_checkable

from testrun.types import Test, TestMethod


@runtime_checkable
class LifecycleHook(Protocol):
    """Protocol for lifecycle hooks - implement this, don't inherit."""

    def before(self, method: TestMethod, test: Test) -> Optional[Awaitable[None]]:
        """Runs before the test body."""
        ...

    def after(self, method: TestMethod, test: Test) -> Optional[Awaitable[None]]:
        """Runs after the test body, only if ``before`` succeeded."""
        ...


class BeforeAfterTestHook:
    """Base class with no-op hooks; override either side."""

    async def before(self, method: TestMethod, test: Test) -> None:
        pass

    async def after(self, method: TestMethod, test: Test) -> None:
        pass


HookFunc = Callable[[TestMethod, Test], Any]


async def _noop(method: TestMethod, test: Test) -> None:
    return None


@dataclass
class FunctionHook:
    """
    A lifecycle hook assembled from two callables.

    Attributes:
        before: Callable taking (method, test); sync or async
        after: Callable taking (method, test); sync or async
        name: Display name in messages (defaults to the before func's name)
    """

    before: HookFunc = _noop
    after: HookFunc = _noop
    name: str = ""

    def __post_init__(self):
        if not self.name:
            func = self.before if self.before is not _noop else self.after
            self.name = getattr(func, "__name__", "unknown")

    @property
    def display_name(self) -> str:
        return self.name


def hook_display_name(hook: Any) -> str:
    """Name reported in hook messages; the hook's class name unless it names itself."""
    name = getattr(hook, "display_name", None)
    if isinstance(name, str) and name:
        return name
    return type(hook).__name__
