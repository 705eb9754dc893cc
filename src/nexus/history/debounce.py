"""Quiet-period coalescing of rapid changes on the asyncio event loop."""

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)


class Debouncer:
    """Runs ``callback`` once after ``delay`` seconds without a new ``trigger``.

    Each trigger restarts the timer, so a burst of changes (a slider drag)
    produces a single call. Must be used from a running event loop.
    """

    def __init__(self, callback: Callable[[], object], delay: float):
        self._callback = callback
        self._delay = delay
        self._handle: asyncio.TimerHandle | None = None

    @property
    def delay(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._delay, self._fire)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def flush(self) -> None:
        """Run a pending callback now instead of waiting for the quiet period."""
        if self._handle is not None:
            self._fire()

    def _fire(self) -> None:
        self._handle = None
        self._callback()
