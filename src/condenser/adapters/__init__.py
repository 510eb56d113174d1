"""Host adapters: fold rendering helpers and the Textual front end."""

from .folding import CondensedView, DisplayLine, fold_document

__all__ = ["CondensedView", "DisplayLine", "fold_document"]
