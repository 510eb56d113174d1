"""Cooperative cancellation token checked at scan checkpoints."""

from __future__ import annotations

import threading


class CancelToken:
    """Settable-once flag; safe to set from any thread."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def __repr__(self) -> str:
        return f"CancelToken(cancelled={self.cancelled})"


__all__ = ["CancelToken"]
