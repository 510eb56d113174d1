"""Per-document condensing state."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from condenser.document import LineDocument
from condenser.scan import CancelToken, ErrorKind, HighlightSpan, LineRange, View

from .history import FilterHistory
from .scheduler import DebounceSlot


class SessionState(str, Enum):
    IDLE = "idle"
    SCHEDULED = "scheduled"
    SCANNING = "scanning"
    ERROR = "error"


@dataclass(slots=True)
class Session:
    """Condensing state tied to one open document identity.

    ``current_filter`` and ``current_view`` only change together through
    ``commit``/``reset``, so a renderer never sees ranges from one filter
    paired with another.
    """

    document_id: str
    document: LineDocument
    slot: DebounceSlot = field(default_factory=DebounceSlot)
    history: FilterHistory = field(default_factory=FilterHistory)
    current_filter: str = ""
    current_view: Optional[View] = None
    error: str = ""
    busy: bool = False
    abort_requested: bool = False
    token: CancelToken = field(default_factory=CancelToken)
    epoch: int = 0

    @property
    def pending_request(self) -> Optional[Callable[[], None]]:
        return self.slot.pending

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        return ErrorKind.classify(self.error)

    @property
    def state(self) -> SessionState:
        if self.busy:
            return SessionState.SCANNING
        if self.slot.armed:
            return SessionState.SCHEDULED
        if self.error:
            return SessionState.ERROR
        return SessionState.IDLE

    @property
    def ranges(self) -> tuple[LineRange, ...]:
        return self.current_view.ranges if self.current_view else ()

    @property
    def highlights(self) -> tuple[HighlightSpan, ...]:
        return self.current_view.highlights if self.current_view else ()

    @property
    def active(self) -> bool:
        return bool(self.ranges)

    def schedule(self, callback: Callable[[], None], delay: float) -> None:
        self.cancel_pending()
        self.slot.schedule(callback, delay)

    def cancel_pending(self) -> None:
        """Drop the queued request and ask a running scan to stop."""

        self.slot.cancel()
        self.abort_requested = True

    def begin_scan(self) -> CancelToken:
        self.busy = True
        self.abort_requested = False
        self.token = CancelToken()
        return self.token

    def commit(self, filter_text: str, view: Optional[View], error: str) -> None:
        self.current_filter = filter_text
        self.current_view = view if not error else None
        self.error = error

    def reset(self) -> None:
        """Forced transition back to the inactive state; history survives.

        The running scan stops through ``abort_requested`` and its result is
        discarded by the epoch bump. The token stays untouched: a cancelled
        token also drops whatever the user queues after the stop.
        """

        self.cancel_pending()
        self.epoch += 1
        self.commit("", None, "")

    def dispose(self) -> None:
        self.cancel_pending()
        self.token.cancel()
        self.epoch += 1


__all__ = ["Session", "SessionState"]
