"""Single-shot, cancellable debounce timer built on the asyncio loop."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

__all__ = ["DebounceHandle", "DebounceTimer"]

LOGGER = logging.getLogger(__name__)


class DebounceHandle:
    """Cancellation token for one scheduled debounce callback."""

    __slots__ = ("_callback", "_timer", "_cancelled", "_fired")

    def __init__(self, callback: Callable[[], None]) -> None:
        self._callback = callback
        self._timer: asyncio.TimerHandle | None = None
        self._cancelled = False
        self._fired = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def fired(self) -> bool:
        return self._fired

    @property
    def active(self) -> bool:
        return not (self._cancelled or self._fired)

    def cancel(self) -> None:
        if not self.active:
            return
        self._cancelled = True
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _arm(self, timer: asyncio.TimerHandle) -> None:
        self._timer = timer

    def _fire(self) -> None:
        if not self.active:
            return
        self._fired = True
        self._timer = None
        self._callback()

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        state = "cancelled" if self._cancelled else "fired" if self._fired else "pending"
        return f"<DebounceHandle {state}>"


class DebounceTimer:
    """Delays a callback and restarts the delay whenever it is rescheduled.

    Only one handle is pending at a time: scheduling again cancels the
    previous handle before arming the new one.
    """

    def __init__(self, delay_seconds: float, *, loop: asyncio.AbstractEventLoop | None = None) -> None:
        if delay_seconds < 0:
            raise ValueError("delay_seconds must be non-negative")
        self._delay = float(delay_seconds)
        self._loop = loop
        self._current: DebounceHandle | None = None

    @property
    def delay_seconds(self) -> float:
        return self._delay

    @delay_seconds.setter
    def delay_seconds(self, value: float) -> None:
        if value < 0:
            raise ValueError("delay_seconds must be non-negative")
        self._delay = float(value)

    @property
    def pending(self) -> bool:
        return self._current is not None and self._current.active

    def schedule(self, callback: Callable[[], None]) -> DebounceHandle:
        self.cancel()
        loop = self._loop or asyncio.get_running_loop()
        handle = DebounceHandle(callback)
        handle._arm(loop.call_later(self._delay, handle._fire))
        self._current = handle
        return handle

    def cancel(self) -> None:
        if self._current is not None:
            self._current.cancel()
            self._current = None
