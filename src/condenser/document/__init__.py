"""Document abstractions read by the scan engine."""

from .document import LineDocument, TextDocument

__all__ = ["LineDocument", "TextDocument"]
