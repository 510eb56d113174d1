"""Textual host for the condenser.

``app`` needs the ``textual`` package at import time; the controller does not.
"""

from .controller import TextualCondenseAdapter, TextualCondenseHooks

__all__ = ["TextualCondenseAdapter", "TextualCondenseHooks"]
