"""Mapping from document identity to its live ``Session``."""

from __future__ import annotations

from typing import Dict, Iterator, Optional

from condenser.document import LineDocument
from condenser.runtime import telemetry

from .scheduler import DebounceSlot, TimerFactory, loop_timer
from .session import Session


class SessionExistsError(RuntimeError):
    """Raised when a second session is opened for a live document."""

    def __init__(self, document_id: str) -> None:
        super().__init__(f"Session for '{document_id}' already exists")
        self.document_id = document_id


class UnknownSessionError(KeyError):
    """Raised when an operation targets a document without a session."""

    def __init__(self, document_id: str) -> None:
        super().__init__(document_id)
        self.document_id = document_id


class SessionStore:
    def __init__(self, *, timers: TimerFactory = loop_timer) -> None:
        self._sessions: Dict[str, Session] = {}
        self._timers = timers

    def open(self, document_id: str, document: LineDocument) -> Session:
        if document_id in self._sessions:
            raise SessionExistsError(document_id)
        session = Session(
            document_id=document_id,
            document=document,
            slot=DebounceSlot(self._timers),
        )
        self._sessions[document_id] = session
        telemetry.record_event(
            "session.open",
            data={"document": document_id, "lines": document.line_count},
        )
        return session

    def get(self, document_id: str) -> Optional[Session]:
        return self._sessions.get(document_id)

    def require(self, document_id: str) -> Session:
        try:
            return self._sessions[document_id]
        except KeyError as exc:
            raise UnknownSessionError(document_id) from exc

    def close(self, document_id: str) -> bool:
        session = self._sessions.pop(document_id, None)
        if session is None:
            return False
        session.dispose()
        telemetry.record_event("session.close", data={"document": document_id})
        return True

    def close_all(self) -> None:
        for document_id in list(self._sessions):
            self.close(document_id)

    def active_ids(self) -> tuple[str, ...]:
        return tuple(key for key, session in self._sessions.items() if session.active)

    def __contains__(self, document_id: object) -> bool:
        return document_id in self._sessions

    def __iter__(self) -> Iterator[Session]:
        return iter(list(self._sessions.values()))

    def __len__(self) -> int:
        return len(self._sessions)


__all__ = ["SessionExistsError", "SessionStore", "UnknownSessionError"]
