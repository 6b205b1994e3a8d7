"""Cooperative cancellation shared by every context of a test run."""

from __future__ import annotations

import threading
from typing import Optional

from testrun.utils.logging_utils import get_logger

logger = get_logger(__name__)


class CancellationSource:
    """
    One-way cancellation flag.

    Once cancelled it stays cancelled; there is no reset. Producers consult
    :attr:`is_cancellation_requested` before starting new work and never
    abort work already in flight.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        if not self._event.is_set():
            logger.warning("cancellation_requested")
        self._event.set()

    @property
    def is_cancellation_requested(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled; returns False if the timeout elapsed first."""
        return self._event.wait(timeout)

    def __repr__(self) -> str:
        return f"CancellationSource(cancelled={self.is_cancellation_requested})"
