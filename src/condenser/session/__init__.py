"""Per-document sessions, debounce scheduling, and the scan coordinator."""

from .coordinator import CondenseCoordinator, CoordinatorHooks, Scanner
from .history import FilterHistory
from .scheduler import DebounceSlot, TimerFactory, TimerHandle, loop_timer
from .session import Session, SessionState
from .store import SessionExistsError, SessionStore, UnknownSessionError

__all__ = [
    "CondenseCoordinator",
    "CoordinatorHooks",
    "DebounceSlot",
    "FilterHistory",
    "Scanner",
    "Session",
    "SessionExistsError",
    "SessionState",
    "SessionStore",
    "TimerFactory",
    "TimerHandle",
    "UnknownSessionError",
    "loop_timer",
]
