"""Single-slot debounce timer: one pending callback, one armed timer."""

from __future__ import annotations

import asyncio
from typing import Callable, Optional, Protocol


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...


TimerFactory = Callable[[float, Callable[[], None]], TimerHandle]


def loop_timer(delay: float, callback: Callable[[], None]) -> TimerHandle:
    """Default timer factory backed by the running event loop."""

    return asyncio.get_running_loop().call_later(delay, callback)


class DebounceSlot:
    """Holds at most one pending continuation behind a cancellable timer.

    Scheduling always cancels the armed timer and replaces the pending
    callback, so only the last request before the timer fires ever runs.
    """

    def __init__(self, timers: TimerFactory = loop_timer) -> None:
        self._timers = timers
        self._handle: Optional[TimerHandle] = None
        self._pending: Optional[Callable[[], None]] = None
        self._delay: float = 0.0

    @property
    def pending(self) -> Optional[Callable[[], None]]:
        return self._pending

    @property
    def armed(self) -> bool:
        return self._handle is not None

    @property
    def delay(self) -> float:
        return self._delay

    def schedule(self, callback: Callable[[], None], delay: float) -> None:
        self.cancel()
        self._pending = callback
        self._delay = delay
        self._handle = self._timers(delay, self._fire)

    def expedite(self, delay: float = 0.0) -> bool:
        """Re-arm the pending callback with a shorter delay."""

        if self._pending is None:
            return False
        self.schedule(self._pending, delay)
        return True

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._pending = None

    def _fire(self) -> None:
        callback = self._pending
        self._handle = None
        self._pending = None
        if callback is not None:
            callback()


__all__ = ["DebounceSlot", "TimerFactory", "TimerHandle", "loop_timer"]
