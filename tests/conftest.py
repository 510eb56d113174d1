"""Shared pytest fixtures."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List

import pytest


@dataclass
class ManualTimer:
    deadline: float
    delay: float
    callback: Callable[[], None]
    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True


@dataclass
class ManualTimers:
    """Timer factory driven by ``advance`` instead of wall-clock time."""

    now: float = 0.0
    timers: List[ManualTimer] = field(default_factory=list)

    def __call__(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(deadline=self.now + delay, delay=delay, callback=callback)
        self.timers.append(timer)
        return timer

    def armed(self) -> List[ManualTimer]:
        return [timer for timer in self.timers if not timer.cancelled]

    def advance(self, seconds: float) -> int:
        """Move the clock forward, firing due timers in deadline order."""

        target = self.now + seconds
        fired = 0
        while True:
            due = [timer for timer in self.armed() if timer.deadline <= target + 1e-9]
            if not due:
                break
            timer = min(due, key=lambda item: item.deadline)
            self.timers.remove(timer)
            self.now = max(self.now, timer.deadline)
            timer.callback()
            fired += 1
        self.now = target
        return fired


@pytest.fixture
def timers() -> ManualTimers:
    return ManualTimers()
