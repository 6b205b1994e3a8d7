"""
ExceptionAggregator - Collects failures without raising them.

Operations that must not abort the surrounding test pipeline run through the
aggregator. The owning test runner inspects it afterwards to decide whether
the test failed.

Usage:
    aggregator = ExceptionAggregator()

    value = aggregator.run(lambda: compute(), default=None)
    await aggregator.run_async(hook.after, method, test)

    if aggregator.has_exceptions:
        raise aggregator.to_exception()
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional, TypeVar

from testrun.utils.async_utils import maybe_await
from testrun.utils.logging_utils import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class ExceptionAggregator:
    """
    Thread-safe, append-only collection of captured exceptions.

    Only ``Exception`` subclasses are captured; ``KeyboardInterrupt``,
    ``SystemExit`` and ``asyncio.CancelledError`` always propagate.
    """

    def __init__(self) -> None:
        self._exceptions: list[BaseException] = []
        self._lock = threading.Lock()

    def add(self, exc: Optional[BaseException]) -> None:
        """Record an exception directly. ``None`` is ignored."""
        if exc is None:
            return
        with self._lock:
            self._exceptions.append(exc)
        logger.debug(
            "exception_recorded",
            exc_type=type(exc).__name__,
            total=len(self._exceptions),
        )

    def run(self, func: Callable[[], T], default: Optional[T] = None) -> Optional[T]:
        """Call ``func``; on failure record the exception and return ``default``."""
        try:
            return func()
        except Exception as e:
            self.add(e)
            return default

    async def run_async(
        self, func: Callable[..., Any], *args: Any, default: Any = None
    ) -> Any:
        """
        Async variant of :meth:`run`.

        ``func`` may be a coroutine function or a plain callable returning an
        awaitable (or nothing at all).
        """
        try:
            return await maybe_await(func, *args)
        except Exception as e:
            self.add(e)
            return default

    @property
    def has_exceptions(self) -> bool:
        with self._lock:
            return bool(self._exceptions)

    @property
    def exceptions(self) -> tuple[BaseException, ...]:
        """Snapshot of the recorded exceptions, in recording order."""
        with self._lock:
            return tuple(self._exceptions)

    def clear(self) -> None:
        with self._lock:
            self._exceptions.clear()

    def to_exception(self) -> Optional[BaseException]:
        """
        Collapse the recorded failures into one exception.

        Returns None when nothing was recorded, the exception itself when
        exactly one was, and an ExceptionGroup otherwise.
        """
        excs = self.exceptions
        if not excs:
            return None
        if len(excs) == 1:
            return excs[0]
        return BaseExceptionGroup("Multiple failures", list(excs))

    def __len__(self) -> int:
        with self._lock:
            return len(self._exceptions)

    def __repr__(self) -> str:
        return f"ExceptionAggregator(exceptions={len(self)})"
