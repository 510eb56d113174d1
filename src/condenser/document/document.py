"""Line-oriented document storage consumed by the scan engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Protocol, runtime_checkable


@runtime_checkable
class LineDocument(Protocol):
    """Read-only view the engine needs: a line count and indexed line text."""

    @property
    def line_count(self) -> int:
        ...

    def get_line(self, index: int) -> str:
        ...


@dataclass(slots=True)
class TextDocument:
    """Simple list-of-lines document.

    Hosts with their own text storage only need to satisfy ``LineDocument``;
    this class covers files loaded from disk and tests.
    """

    _lines: List[str] = field(default_factory=lambda: [""])
    name: str = "untitled"

    @classmethod
    def from_text(cls, text: str, *, name: str = "untitled") -> "TextDocument":
        lines = text.splitlines()
        if not lines:
            lines = [""]
        elif text.endswith("\n"):
            lines.append("")
        return cls(_lines=list(lines), name=name)

    @classmethod
    def from_lines(
        cls, lines: Iterable[str], *, name: str = "untitled"
    ) -> "TextDocument":
        return cls(_lines=list(lines) or [""], name=name)

    @classmethod
    def from_path(cls, path: str | Path, *, encoding: str = "utf-8") -> "TextDocument":
        source = Path(path)
        text = source.read_text(encoding=encoding, errors="replace")
        return cls.from_text(text, name=str(source))

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def get_line(self, index: int) -> str:
        return self._lines[index]


__all__ = ["LineDocument", "TextDocument"]
