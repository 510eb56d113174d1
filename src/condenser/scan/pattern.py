"""Pattern validation performed before any scan starts."""

from __future__ import annotations

import re
from typing import Pattern

from .models import INVALID_PATTERN


class InvalidPatternError(ValueError):
    """Raised when user input does not compile as a regular expression."""

    def __init__(self, pattern: str, *, reason: str | None = None) -> None:
        super().__init__(INVALID_PATTERN)
        self.pattern = pattern
        self.reason = reason


def compile_pattern(text: str) -> Pattern[str]:
    try:
        return re.compile(text)
    except (re.error, OverflowError, RecursionError) as exc:
        raise InvalidPatternError(text, reason=str(exc)) from exc


__all__ = ["InvalidPatternError", "compile_pattern"]
