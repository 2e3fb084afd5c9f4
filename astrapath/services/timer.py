"""Repeating timer on the asyncio event loop."""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class IntervalTimer:
    """Calls a callback every `interval` seconds until cancelled."""

    def __init__(self, interval: float, callback: Callable[[], None]):
        self.interval = interval
        self.callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None
        self._cancelled = False

    @property
    def is_running(self) -> bool:
        return self._handle is not None and not self._cancelled

    def start(self) -> None:
        if self.is_running:
            logger.warning("IntervalTimer already running")
            return
        self._cancelled = False
        self._schedule()

    def _schedule(self) -> None:
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.interval, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        # Reschedule first so a callback that cancels the timer wins
        self._schedule()
        try:
            self.callback()
        except Exception as e:
            logger.error(f"Unhandled exception in timer callback: {e}", exc_info=True)

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
