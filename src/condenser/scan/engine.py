"""Line scan that turns a document and a pattern into fold ranges + highlights."""

from __future__ import annotations

import asyncio
import os
import re
import sys
import time
from pathlib import Path
from typing import Callable, List, Optional, Pattern

from condenser.config import ScanLimits
from condenser.document import LineDocument
from condenser.runtime import telemetry

from .cancellation import CancelToken
from .models import ABORTED, TOO_MANY_HITS, HighlightSpan, LineRange, View

ProgressCallback = Callable[[int, int, int], bool]
MemoryProbe = Callable[[], int]
Clock = Callable[[], float]


STATM_PATH = Path("/proc/self/statm")


def current_memory_usage() -> int:
    """Resident set size of this process, or 0 where unavailable.

    Current RSS comes from ``/proc/self/statm`` where it exists. Elsewhere
    this falls back to ``ru_maxrss``, the lifetime peak, so after one large
    scan later baselines stay high and the memory guard trips later. Only
    ratios between samples matter, so the units may differ by platform.
    """

    try:
        resident = int(STATM_PATH.read_text(encoding="ascii").split()[1])
        return resident * os.sysconf("SC_PAGE_SIZE")
    except (OSError, ValueError, IndexError):
        pass
    if sys.platform == "win32":
        return 0
    import resource

    return resource.getrusage(resource.RUSAGE_SELF).ru_maxrss


async def scan(
    document: LineDocument,
    pattern: str | Pattern[str],
    on_progress: Optional[ProgressCallback] = None,
    *,
    token: Optional[CancelToken] = None,
    limits: Optional[ScanLimits] = None,
    clock: Clock = time.monotonic,
    memory_probe: MemoryProbe = current_memory_usage,
) -> View:
    """Scan ``document`` line by line and build the condensed ``View``.

    Every matching line closes the block opened by the previous matching line
    (``[previous, index - 1]``), or the leading block ``[0, index - 1]`` when
    it is the first match past line 1. A block still open after the last line
    closes at the end of the document unless it starts there. Blocks never
    span a single line.

    ``on_progress(line, line_count, match_count)`` and ``token`` are only
    consulted at checkpoints: every ``limits.check_every_lines`` lines, once
    ``limits.grace_period`` has elapsed, and no more often than
    ``limits.report_interval``. Each checkpoint also yields to the event loop
    and trips the memory guard when usage grows past
    ``limits.memory_factor`` times the pre-scan baseline.

    Failures never raise; they come back as ``View(error=...)`` with all
    partial results dropped.
    """

    source = pattern if isinstance(pattern, str) else pattern.pattern
    if not source:
        return View.empty()

    logger = telemetry.get_logger("condenser.scan")
    limits = limits or ScanLimits()
    ranges: List[LineRange] = []
    highlights: List[HighlightSpan] = []
    matches = 0

    try:
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        line_count = document.line_count
        range_start = -1
        next_check = clock() + limits.grace_period
        baseline = memory_probe()
        logger.debug(f"scan: [{source}] memory baseline {baseline}")

        for index in range(line_count):
            if index % limits.check_every_lines == 0:
                now = clock()
                if next_check < now:
                    next_check = now + limits.report_interval
                    stop = token is not None and token.cancelled
                    if on_progress is not None and on_progress(
                        index, line_count, matches
                    ):
                        stop = True
                    if stop:
                        return View.failed(ABORTED)

                    await asyncio.sleep(0)

                    usage = memory_probe()
                    if baseline and usage > baseline * limits.memory_factor:
                        logger.warning(
                            f"scan: [{source}] memory {usage} over baseline {baseline}"
                        )
                        return View.failed(TOO_MANY_HITS)

            text = document.get_line(index)
            found = [match.span() for match in regex.finditer(text)]
            if not found:
                continue

            matches += 1
            if range_start < 0 and index > 1:
                ranges.append(LineRange(0, index - 1))
            elif range_start >= 0 and range_start != index - 1:
                ranges.append(LineRange(range_start, index - 1))
            range_start = index

            for start, end in found:
                # zero-width matches still mark the line but have nothing to paint
                if end > start:
                    highlights.append(HighlightSpan(index, start, end))

        if range_start >= 0 and range_start != line_count - 1:
            ranges.append(LineRange(range_start, line_count - 1))
    except Exception as exc:
        logger.error(f"scan: [{source}] failed: {exc!r}")
        return View.failed(str(exc) or exc.__class__.__name__)

    return View(
        ranges=tuple(ranges),
        highlights=tuple(highlights),
        match_count=matches,
    )


__all__ = ["ProgressCallback", "current_memory_usage", "scan"]
