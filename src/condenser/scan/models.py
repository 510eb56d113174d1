"""Value types produced by the scan engine."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

ABORTED = "aborted"
TOO_MANY_HITS = "too many hits - make it simpler"
NO_MATCHES = "no matches"
INVALID_PATTERN = "not a valid regular expression"


class ErrorKind(str, Enum):
    """How a failed scan should be presented."""

    INVALID_PATTERN = "invalid_pattern"
    ABORTED = "aborted"
    RESOURCE_EXHAUSTED = "resource_exhausted"
    NO_MATCHES = "no_matches"
    INTERNAL = "internal"

    @classmethod
    def classify(cls, message: str) -> Optional["ErrorKind"]:
        if not message:
            return None
        return _KNOWN_MESSAGES.get(message, cls.INTERNAL)


_KNOWN_MESSAGES = {
    ABORTED: ErrorKind.ABORTED,
    TOO_MANY_HITS: ErrorKind.RESOURCE_EXHAUSTED,
    NO_MATCHES: ErrorKind.NO_MATCHES,
    INVALID_PATTERN: ErrorKind.INVALID_PATTERN,
}


@dataclass(frozen=True, slots=True)
class LineRange:
    """Inclusive block of lines that folds as a unit."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"invalid line range [{self.start}, {self.end}]")

    def __len__(self) -> int:
        return self.end - self.start + 1

    def __contains__(self, line: object) -> bool:
        return isinstance(line, int) and self.start <= line <= self.end


@dataclass(frozen=True, slots=True)
class HighlightSpan:
    """Column extent of one pattern occurrence within a line."""

    line: int
    start_col: int
    end_col: int

    def __post_init__(self) -> None:
        if self.start_col < 0 or self.end_col <= self.start_col:
            raise ValueError(
                f"invalid highlight span {self.start_col}:{self.end_col}"
            )


@dataclass(frozen=True, slots=True)
class View:
    """Outcome of one scan: fold ranges and highlights, or an error."""

    ranges: tuple[LineRange, ...] = ()
    highlights: tuple[HighlightSpan, ...] = ()
    match_count: int = 0
    error: Optional[str] = None

    @classmethod
    def empty(cls) -> "View":
        return cls()

    @classmethod
    def failed(cls, message: str) -> "View":
        return cls(error=message or ErrorKind.INTERNAL.value)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        return ErrorKind.classify(self.error or "")


__all__ = [
    "ABORTED",
    "ErrorKind",
    "HighlightSpan",
    "INVALID_PATTERN",
    "LineRange",
    "NO_MATCHES",
    "TOO_MANY_HITS",
    "View",
]
