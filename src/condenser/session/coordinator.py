"""Coordinator serializing debounced scans per document session."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Coroutine, Optional, Set

from condenser.config import CondenserConfig
from condenser.document import LineDocument
from condenser.runtime import telemetry
from condenser.scan import (
    NO_MATCHES,
    CancelToken,
    ErrorKind,
    HighlightSpan,
    InvalidPatternError,
    LineRange,
    View,
    compile_pattern,
    scan,
)

from .scheduler import TimerFactory, loop_timer
from .session import Session
from .store import SessionStore

Scanner = Callable[..., Awaitable[View]]


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


def _needs_scan(session: Session, text: str) -> bool:
    # an aborted result never stands for its filter
    return text != session.current_filter or session.error_kind is ErrorKind.ABORTED


@dataclass(slots=True)
class CoordinatorHooks:
    """Callbacks through which the host renders session changes."""

    refresh: Callable[[str], None] = _noop
    report_progress: Callable[[str, str, float], None] = _noop
    show_message: Callable[[str, str], None] = _noop
    set_input: Callable[[str, str], None] = _noop
    update_active: Callable[[tuple[str, ...]], None] = _noop


class CondenseCoordinator:
    """Turns filter-change events into serialized, debounced scans.

    Every entry point is synchronous and safe to call from UI callbacks; the
    scans themselves run as tasks on the running event loop. Within a session
    a scan never overlaps another one: requests that arrive while it is busy
    are parked in the session's debounce slot and re-armed with the expedite
    delay as soon as it finishes.
    """

    def __init__(
        self,
        hooks: Optional[CoordinatorHooks] = None,
        *,
        config: Optional[CondenserConfig] = None,
        timers: TimerFactory = loop_timer,
        scanner: Scanner = scan,
    ) -> None:
        self.hooks = hooks or CoordinatorHooks()
        self.config = config or CondenserConfig()
        self.sessions = SessionStore(timers=timers)
        self.logger = telemetry.get_logger("condenser.session")
        self._scanner = scanner
        self._tasks: Set[asyncio.Task[None]] = set()

    # lifecycle
    def open(self, document_id: str, document: LineDocument) -> Session:
        return self.sessions.open(document_id, document)

    def activate(
        self, document_id: str, document: LineDocument, seed: Optional[str] = None
    ) -> Session:
        """Show the condenser for a document, seeding the input box."""

        session = self.sessions.get(document_id) or self.open(document_id, document)
        session.history.reset_cursor()
        value = seed or session.current_filter
        self.hooks.set_input(document_id, value)
        self.hooks.show_message(document_id, "")
        self._launch(self.analyze(session, value))
        return session

    def close(self, document_id: str) -> None:
        if self.sessions.close(document_id):
            self._publish_active()

    async def aclose(self) -> None:
        self.sessions.close_all()
        await self.join()

    # input events
    def change(self, document_id: str, text: str) -> None:
        session = self.sessions.require(document_id)
        self._schedule(session, text, self.config.input_delay)

    def accept(self, document_id: str, text: str) -> None:
        session = self.sessions.require(document_id)
        if not text:
            self.stop(document_id)
            return
        session.cancel_pending()
        if _needs_scan(session, text):
            self._launch(self.analyze(session, text))
        session.history.commit(text)
        record = {"document": document_id, "filter": text}
        telemetry.record_event("filter.accept", data=record)

    def stop(self, document_id: str) -> None:
        """Explicit stop: drop queued work, abort the scan, clear the view."""

        session = self.sessions.require(document_id)
        session.reset()
        self.hooks.show_message(document_id, "")
        self._refresh(session)

    def cancel(self, document_id: str) -> None:
        """Progress-surface cancel: stop the running scan and anything queued."""

        session = self.sessions.require(document_id)
        session.token.cancel()
        session.cancel_pending()

    def history_prev(self, document_id: str) -> str:
        session = self.sessions.require(document_id)
        return self._browse(session, session.history.prev())

    def history_next(self, document_id: str) -> str:
        session = self.sessions.require(document_id)
        return self._browse(session, session.history.next())

    # queries
    def get(self, document_id: str) -> Optional[Session]:
        return self.sessions.get(document_id)

    def ranges_for(self, document_id: str) -> tuple[LineRange, ...]:
        session = self.sessions.get(document_id)
        return session.ranges if session else ()

    def highlights_for(self, document_id: str) -> tuple[HighlightSpan, ...]:
        session = self.sessions.get(document_id)
        return session.highlights if session else ()

    def active_documents(self) -> tuple[str, ...]:
        return self.sessions.active_ids()

    async def join(self) -> None:
        """Wait until no scan task is outstanding."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # scanning
    async def analyze(self, session: Session, text: str) -> None:
        if session.busy:
            self.logger.debug(f"{session.document_id}: busy - request rescheduled")
            self._schedule(session, text, self.config.input_delay)
            self._refresh(session)
            return

        token = session.begin_scan()
        epoch = session.epoch
        try:
            if _needs_scan(session, text):
                view, error = await self._run_scan(session, text, token)
                if session.epoch == epoch:
                    session.commit(text, view, error)
                if token.cancelled:
                    session.cancel_pending()
        finally:
            session.busy = False

        if self.sessions.get(session.document_id) is not session:
            self.logger.debug(f"{session.document_id}: closed during scan")
            return

        self.logger.debug(
            f"{session.document_id}: filter=[{session.current_filter}] "
            f"error=[{session.error}] ranges={len(session.ranges)} "
            f"highlights={len(session.highlights)}"
        )
        if session.slot.expedite(self.config.expedite_delay):
            self.logger.debug(f"{session.document_id}: expedite next pending scan")
        self._refresh(session)

    async def _run_scan(
        self, session: Session, text: str, token: CancelToken
    ) -> tuple[Optional[View], str]:
        if not text:
            return None, ""
        try:
            pattern = compile_pattern(text)
        except InvalidPatternError as exc:
            return None, str(exc)

        document_id = session.document_id
        scanned = 0

        def on_progress(line: int, lines: int, matches: int) -> bool:
            nonlocal scanned
            self.hooks.report_progress(
                document_id,
                f"line {line} - {matches} matches found",
                100 * (line - scanned) / lines,
            )
            scanned = line
            return session.abort_requested

        with telemetry.span(
            "condense::scan",
            component="scan",
            metadata={"document": document_id, "filter": text},
        ) as handle:
            view = await self._scanner(
                session.document,
                pattern,
                on_progress,
                token=token,
                limits=self.config.limits,
            )
            handle.add_metadata("matches", view.match_count)
            handle.add_metadata("error", view.error or "")

        error = view.error or ("" if view.match_count else NO_MATCHES)
        return (None if error else view), error

    def _schedule(self, session: Session, text: str, delay: float) -> None:
        self.logger.debug(f"{session.document_id}: schedule a scan in {delay}s")
        session.schedule(lambda: self._launch(self.analyze(session, text)), delay)

    def _browse(self, session: Session, value: str) -> str:
        self.hooks.set_input(session.document_id, value)
        if session.current_filter != value:
            self._schedule(session, value, self.config.history_delay)
        return value

    def _launch(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _refresh(self, session: Session) -> None:
        # a queued scan is about to replace this result; keep its error quiet
        quiet = session.pending_request or session.error_kind is ErrorKind.ABORTED
        message = "" if quiet else session.error
        self.hooks.show_message(session.document_id, message)
        self.hooks.refresh(session.document_id)
        self._publish_active()

    def _publish_active(self) -> None:
        self.hooks.update_active(self.active_documents())


__all__ = ["CondenseCoordinator", "CoordinatorHooks", "Scanner"]
