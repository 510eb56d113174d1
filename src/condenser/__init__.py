"""Condense large line-oriented documents down to the lines matching a pattern."""

__all__ = [
    "adapters",
    "config",
    "document",
    "runtime",
    "scan",
    "session",
]

__version__ = "0.1.0"
