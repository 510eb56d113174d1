"""Translate fold ranges + highlights into rows a host can paint."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from condenser.document import LineDocument
from condenser.scan import HighlightSpan, LineRange


@dataclass(frozen=True, slots=True)
class DisplayLine:
    """One visible document line; ``hidden`` counts folded lines after it."""

    index: int
    text: str
    highlights: tuple[tuple[int, int], ...] = ()
    hidden: int = 0


@dataclass(frozen=True, slots=True)
class CondensedView:
    document_id: str
    filter_text: str
    lines: tuple[DisplayLine, ...]
    match_count: int = 0
    error: str = ""
    collapsed: bool = True

    @property
    def hidden_count(self) -> int:
        return sum(line.hidden for line in self.lines)


def fold_document(
    document: LineDocument,
    ranges: Sequence[LineRange],
    highlights: Sequence[HighlightSpan] = (),
    *,
    collapsed: bool = True,
) -> tuple[DisplayLine, ...]:
    """Apply editor fold semantics: ``[start, end]`` keeps ``start`` as header."""

    by_line: Dict[int, List[tuple[int, int]]] = {}
    for span in highlights:
        by_line.setdefault(span.line, []).append((span.start_col, span.end_col))

    folds: Dict[int, int] = {}
    if collapsed:
        folds = {fold.start: fold.end for fold in ranges if fold.end > fold.start}

    rows: List[DisplayLine] = []
    index = 0
    line_count = document.line_count
    while index < line_count:
        end: Optional[int] = folds.get(index)
        hidden = (min(end, line_count - 1) - index) if end is not None else 0
        rows.append(
            DisplayLine(
                index=index,
                text=document.get_line(index),
                highlights=tuple(by_line.get(index, ())),
                hidden=hidden,
            )
        )
        index += hidden + 1
    return tuple(rows)


__all__ = ["CondensedView", "DisplayLine", "fold_document"]
