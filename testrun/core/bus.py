"""
Message buses that accept execution messages.

A bus answers every ``queue_message`` call with a bool. ``False`` means the
message was refused (backpressure, shutdown) and the producer should stop
starting new work.
"""

from __future__ import annotations

import threading
from typing import Callable, Optional, Protocol, runtime_checkable

from testrun.messages import TestMessage
from testrun.utils.logging_utils import get_logger

logger = get_logger(__name__)


@runtime_checkable
class MessageBus(Protocol):
    """Protocol for message buses - any object implementing this works."""

    def queue_message(self, message: TestMessage) -> bool:
        """Queue a message; return False if it was rejected."""
        ...


class InMemoryMessageBus:
    """
    Records accepted messages in order.

    Rejects messages once ``max_messages`` have been accepted, or after
    :meth:`shutdown`. Safe to share between threads. Rejected messages are
    kept for inspection and never pruned, so this is meant for tests and
    short runs.

    Attributes:
        max_messages: Capacity before the bus starts refusing (None = unbounded)
    """

    def __init__(self, max_messages: Optional[int] = None) -> None:
        self.max_messages = max_messages
        self._messages: list[TestMessage] = []
        self._rejected: list[TestMessage] = []
        self._closed = False
        self._lock = threading.Lock()

    def queue_message(self, message: TestMessage) -> bool:
        with self._lock:
            closed = self._closed
            full = (
                self.max_messages is not None
                and len(self._messages) >= self.max_messages
            )
            if closed or full:
                self._rejected.append(message)
                accepted = False
            else:
                self._messages.append(message)
                accepted = True

        if not accepted:
            logger.debug(
                "message_rejected",
                message_type=type(message).__name__,
                test_id=message.test_unique_id,
                closed=closed,
            )
        return accepted

    def shutdown(self) -> None:
        """Refuse every message from now on."""
        with self._lock:
            self._closed = True

    @property
    def is_shutdown(self) -> bool:
        return self._closed

    @property
    def messages(self) -> list[TestMessage]:
        """Accepted messages, in queue order."""
        with self._lock:
            return list(self._messages)

    @property
    def rejected(self) -> list[TestMessage]:
        with self._lock:
            return list(self._rejected)

    def __repr__(self) -> str:
        return (
            f"InMemoryMessageBus("
            f"accepted={len(self._messages)}, "
            f"rejected={len(self._rejected)}, "
            f"closed={self._closed})"
        )


class CallbackMessageBus:
    """
    Adapts a callable into a bus.

    The callback's return value decides acceptance; ``None`` counts as
    accepted so plain ``list.append`` style sinks work unchanged.
    """

    def __init__(self, callback: Callable[[TestMessage], Optional[bool]]) -> None:
        self._callback = callback

    def queue_message(self, message: TestMessage) -> bool:
        result = self._callback(message)
        return True if result is None else bool(result)
