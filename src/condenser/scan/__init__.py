"""Scan engine: pattern validation, cancellation, and the line scan itself."""

from .cancellation import CancelToken
from .engine import ProgressCallback, current_memory_usage, scan
from .models import (
    ABORTED,
    INVALID_PATTERN,
    NO_MATCHES,
    TOO_MANY_HITS,
    ErrorKind,
    HighlightSpan,
    LineRange,
    View,
)
from .pattern import InvalidPatternError, compile_pattern

__all__ = [
    "ABORTED",
    "INVALID_PATTERN",
    "NO_MATCHES",
    "TOO_MANY_HITS",
    "CancelToken",
    "ErrorKind",
    "HighlightSpan",
    "InvalidPatternError",
    "LineRange",
    "ProgressCallback",
    "View",
    "compile_pattern",
    "current_memory_usage",
    "scan",
]
