"""Adapter that wires a CondenseCoordinator into Textual-friendly callbacks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional

from condenser.adapters.folding import CondensedView, fold_document
from condenser.config import CondenserConfig
from condenser.document import LineDocument
from condenser.scan import scan
from condenser.session import (
    CondenseCoordinator,
    CoordinatorHooks,
    Scanner,
    TimerFactory,
    loop_timer,
)


def _noop(*_args, **_kwargs) -> None:  # pragma: no cover - default hook
    return None


@dataclass(slots=True)
class TextualCondenseHooks:
    """Callbacks invoked by the adapter to update Textual widgets."""

    update_view: Callable[[CondensedView], None]
    update_status: Callable[[str], None] = _noop
    set_input: Callable[[str], None] = _noop
    update_progress: Callable[[str, float], None] = _noop
    # Optional realtime log callback a host may use to surface debug lines
    log: Callable[[str], None] = _noop


class TextualCondenseAdapter:
    """Routes input-box events for the focused document to the coordinator."""

    def __init__(
        self,
        hooks: TextualCondenseHooks,
        *,
        config: Optional[CondenserConfig] = None,
        timers: TimerFactory = loop_timer,
        scanner: Scanner = scan,
    ) -> None:
        self.hooks = hooks
        self.coordinator = CondenseCoordinator(
            CoordinatorHooks(
                refresh=self._on_refresh,
                report_progress=self._on_progress,
                show_message=self._on_message,
                set_input=self._on_set_input,
                update_active=self._on_active,
            ),
            config=config,
            timers=timers,
            scanner=scanner,
        )
        self.document_id: Optional[str] = None
        self._collapsed: Dict[str, bool] = {}

    # host events
    def open_document(
        self, document_id: str, document: LineDocument, *, seed: Optional[str] = None
    ) -> None:
        self.document_id = document_id
        self._log_state("open ->", document=document_id, seed=seed)
        self.coordinator.activate(document_id, document, seed)

    def close_document(self, document_id: str) -> None:
        self._collapsed.pop(document_id, None)
        self.coordinator.close(document_id)
        if self.document_id == document_id:
            self.document_id = None

    def handle_input(self, text: str) -> None:
        if self.document_id is not None:
            self.coordinator.change(self.document_id, text)

    def handle_submit(self, text: str) -> None:
        if self.document_id is not None:
            self._log_state("submit ->", filter=text)
            self.coordinator.accept(self.document_id, text)

    def handle_dismiss(self) -> None:
        """Input hidden (escape/click away): keep whatever is condensed."""

        self.hooks.update_status("")

    def history_prev(self) -> None:
        if self.document_id is not None:
            self.coordinator.history_prev(self.document_id)

    def history_next(self) -> None:
        if self.document_id is not None:
            self.coordinator.history_next(self.document_id)

    def stop(self) -> None:
        if self.document_id is not None:
            self._log_state("stop ->")
            self.coordinator.stop(self.document_id)

    def cancel(self) -> None:
        if self.document_id is not None:
            self.coordinator.cancel(self.document_id)

    def collapse_all(self) -> None:
        self._set_collapsed(True)

    def expand_all(self) -> None:
        self._set_collapsed(False)

    def toggle_collapsed(self) -> None:
        if self.document_id is not None:
            self._set_collapsed(not self._collapsed.get(self.document_id, True))

    def render(self, document_id: Optional[str] = None) -> Optional[CondensedView]:
        target = document_id or self.document_id
        session = self.coordinator.get(target) if target else None
        if session is None:
            return None
        view = session.current_view
        collapsed = self._collapsed.get(session.document_id, True)
        lines = fold_document(
            session.document,
            session.ranges,
            session.highlights,
            collapsed=collapsed,
        )
        return CondensedView(
            document_id=session.document_id,
            filter_text=session.current_filter,
            lines=lines,
            match_count=view.match_count if view else 0,
            error=session.error,
            collapsed=collapsed,
        )

    # coordinator hooks
    def _on_refresh(self, document_id: str) -> None:
        session = self.coordinator.get(document_id)
        if session is not None:
            # fold everything on success, unfold on error
            self._collapsed[document_id] = not session.error
        self._log_state("refresh <-", document=document_id)
        if document_id != self.document_id:
            return
        rendered = self.render(document_id)
        if rendered is not None:
            self.hooks.update_view(rendered)
            self.hooks.update_progress("", 0.0)

    def _on_progress(self, document_id: str, message: str, increment: float) -> None:
        if document_id == self.document_id:
            self.hooks.update_progress(message, increment)

    def _on_message(self, document_id: str, message: str) -> None:
        if document_id == self.document_id:
            self.hooks.update_status(message)

    def _on_set_input(self, document_id: str, text: str) -> None:
        if document_id == self.document_id:
            self.hooks.set_input(text)

    def _on_active(self, document_ids: tuple[str, ...]) -> None:
        self._log_state("active <-", documents=document_ids)

    def _set_collapsed(self, collapsed: bool) -> None:
        if self.document_id is None:
            return
        self._collapsed[self.document_id] = collapsed
        rendered = self.render()
        if rendered is not None:
            self.hooks.update_view(rendered)

    def _log_state(self, prefix: str, **fields: object) -> None:
        snapshot = self._state_metadata()
        snapshot.update({k: v for k, v in fields.items() if v is not None})
        parts = [prefix]
        for key, value in snapshot.items():
            parts.append(f"{key}={value!r}")
        self.hooks.log(" ".join(parts))

    def _state_metadata(self) -> Dict[str, object]:
        session = self.coordinator.get(self.document_id) if self.document_id else None
        if session is None:
            return {"document": self.document_id}
        return {
            "document": session.document_id,
            "state": session.state.value,
            "filter": session.current_filter,
            "error": session.error,
            "history": len(session.history),
        }


__all__ = ["TextualCondenseAdapter", "TextualCondenseHooks"]
