"""Accepted-filter history with clamped prev/next browsing."""

from __future__ import annotations

from typing import List, Sequence


class FilterHistory:
    """Most-recent-first list of committed filters.

    ``cursor == -1`` means no entry is selected (the empty filter). The list
    starts with a single blank slot that the first commit overwrites.
    """

    def __init__(self) -> None:
        self._entries: List[str] = [""]
        self._cursor: int = -1

    @property
    def entries(self) -> Sequence[str]:
        return tuple(entry for entry in self._entries if entry)

    @property
    def cursor(self) -> int:
        return self._cursor

    def commit(self, text: str) -> None:
        if not text:
            return
        if not self._entries[0]:
            self._entries[0] = text
        elif self._entries[0] != text:
            if text in self._entries:
                self._entries.remove(text)
            self._entries.insert(0, text)

    def reset_cursor(self) -> None:
        self._cursor = -1

    def prev(self) -> str:
        """Step to an older entry; stays on the oldest one."""

        self._cursor = min(self._cursor + 1, len(self._entries) - 1)
        return self._entries[self._cursor]

    def next(self) -> str:
        """Step to a newer entry; past the newest one yields the empty filter."""

        self._cursor = max(self._cursor - 1, -1)
        if self._cursor < 0:
            return ""
        return self._entries[self._cursor]

    def __len__(self) -> int:
        return len(self.entries)


__all__ = ["FilterHistory"]
