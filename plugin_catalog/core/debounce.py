"""Trailing-edge debounce for callbacks on the asyncio event loop."""

import asyncio
import logging
from collections.abc import Callable
from typing import Any


logger = logging.getLogger(__name__)


class Debouncer:
    """Collapse a burst of calls into one callback after the burst goes quiet.

    Every call cancels the pending timer and schedules a new one
    ``interval_seconds`` later, so only the most recent arguments are ever
    delivered. Must be called from a thread running the event loop.
    """

    def __init__(
        self,
        callback: Callable[..., Any],
        interval_seconds: float,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._callback = callback
        self.interval_seconds = interval_seconds
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None
        self._pending_args: tuple[Any, ...] = ()

    @property
    def pending(self) -> bool:
        """Whether a callback is scheduled and has not fired yet."""
        return self._handle is not None

    def __call__(self, *args: Any) -> None:
        loop = self._loop or asyncio.get_running_loop()
        if self._handle is not None:
            self._handle.cancel()
            logger.debug("debounce_reset", extra={"interval_seconds": self.interval_seconds})
        self._pending_args = args
        self._handle = loop.call_later(self.interval_seconds, self._fire)

    def _fire(self) -> None:
        self._handle = None
        args, self._pending_args = self._pending_args, ()
        self._callback(*args)

    def cancel(self) -> None:
        """Drop the pending callback without running it."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            self._pending_args = ()

    def flush(self) -> None:
        """Run the pending callback now, if there is one."""
        if self._handle is not None:
            self._handle.cancel()
            self._fire()
