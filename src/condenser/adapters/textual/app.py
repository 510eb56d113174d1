"""Executable Textual app that condenses a file as the filter is typed."""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

try:  # pragma: no cover - imported only when the app is run
    from rich.console import Console
    from rich.text import Text
    from textual.app import App, ComposeResult
    from textual.containers import VerticalScroll
    from textual.widgets import Footer, Header, Input, ProgressBar, Static
except ModuleNotFoundError as exc:  # pragma: no cover - friendly error for missing dep
    raise RuntimeError(
        "Install the 'textual' package to use condenser.adapters.textual.app"
    ) from exc

from condenser.adapters.folding import CondensedView, DisplayLine, fold_document
from condenser.config import CondenserConfig
from condenser.document import TextDocument
from condenser.runtime import telemetry
from condenser.scan import NO_MATCHES, InvalidPatternError, compile_pattern, scan

from .controller import TextualCondenseAdapter, TextualCondenseHooks

MATCH_STYLE = "bold reverse"
GUTTER_STYLE = "dim"


def render_lines(lines: Sequence[DisplayLine]) -> Text:
    """Build one rich ``Text`` with gutters, highlights and fold markers."""

    output = Text(no_wrap=True)
    width = len(str(lines[-1].index + 1)) if lines else 1
    for row in lines:
        output.append(f"{row.index + 1:>{width}} ", style=GUTTER_STYLE)
        line = Text(row.text)
        for start, end in row.highlights:
            line.stylize(MATCH_STYLE, start, end)
        output.append_text(line)
        if row.hidden:
            output.append(f"  ⋯ {row.hidden} lines", style=GUTTER_STYLE)
        output.append("\n")
    return output


class CondenserApp(App[None]):
    """Filter input over a condensed, highlighted document."""

    CSS = """
	Screen {
		layout: vertical;
	}

	#filter-input {
		dock: top;
	}

	#document-view {
		height: 1fr;
		border: round $accent;
		padding: 0 1;
	}

	#status-line {
		height: 1;
		background: $surface-darken-1;
		padding: 0 1;
	}

	#scan-progress {
		height: 1;
	}
	"""

    BINDINGS = [
        ("up", "history_prev", "Prev filter"),
        ("down", "history_next", "Next filter"),
        ("escape", "dismiss_filter", "Hide"),
        ("slash", "show_filter", "Filter"),
        ("ctrl+x", "stop", "Stop"),
        ("ctrl+g", "cancel_scan", "Cancel"),
        ("ctrl+o", "toggle_fold", "Fold/unfold"),
        ("ctrl+b", "collapse_all", "Fold all"),
        ("ctrl+l", "expand_all", "Unfold all"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(
        self,
        document: TextDocument,
        *,
        seed: Optional[str] = None,
        config: Optional[CondenserConfig] = None,
    ) -> None:
        super().__init__()
        self.document = document
        self.seed = seed
        self.config = config or CondenserConfig.from_env()
        self.adapter: TextualCondenseAdapter | None = None
        self._input: Input | None = None
        self._view_widget: Static | None = None
        self._status_widget: Static | None = None
        self._progress: ProgressBar | None = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        self._input = Input(
            placeholder="Enter text or regular expression...", id="filter-input"
        )
        yield self._input
        with VerticalScroll(id="document-view"):
            self._view_widget = Static("")
            yield self._view_widget
        self._progress = ProgressBar(total=100, show_eta=False, id="scan-progress")
        yield self._progress
        self._status_widget = Static("", id="status-line")
        yield self._status_widget
        yield Footer()

    async def on_mount(self) -> None:
        self.title = f"Condense: {self.document.name}"
        hooks = TextualCondenseHooks(
            update_view=self._update_view,
            update_status=self._update_status,
            set_input=self._set_input,
            update_progress=self._update_progress,
            log=self._log_line,
        )
        self.adapter = TextualCondenseAdapter(hooks, config=self.config)
        self.adapter.open_document(self.document.name, self.document, seed=self.seed)
        if self._input:
            self._input.focus()

    async def on_unmount(self) -> None:
        if self.adapter:
            await self.adapter.coordinator.aclose()

    def on_input_changed(self, event: Input.Changed) -> None:
        if self.adapter:
            self.adapter.handle_input(event.value)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if self.adapter:
            self.adapter.handle_submit(event.value)
        self.action_dismiss_filter()

    def action_history_prev(self) -> None:
        if self.adapter:
            self.adapter.history_prev()

    def action_history_next(self) -> None:
        if self.adapter:
            self.adapter.history_next()

    def action_dismiss_filter(self) -> None:
        if self._input:
            self._input.display = False
        if self.adapter:
            self.adapter.handle_dismiss()
        if self._view_widget:
            self.query_one("#document-view").focus()

    def action_show_filter(self) -> None:
        if self._input is None or self.adapter is None:
            return
        self._input.display = True
        self._input.focus()
        self.adapter.open_document(self.document.name, self.document)

    def action_stop(self) -> None:
        if self.adapter:
            self.adapter.stop()
        self._set_input("")
        self.action_dismiss_filter()

    def action_cancel_scan(self) -> None:
        if self.adapter:
            self.adapter.cancel()

    def action_toggle_fold(self) -> None:
        if self.adapter:
            self.adapter.toggle_collapsed()

    def action_collapse_all(self) -> None:
        if self.adapter:
            self.adapter.collapse_all()

    def action_expand_all(self) -> None:
        if self.adapter:
            self.adapter.expand_all()

    def _update_view(self, view: CondensedView) -> None:
        if self._view_widget:
            self._view_widget.update(render_lines(view.lines))
        if not view.error and view.match_count:
            self.sub_title = f"{view.match_count} matching lines"
        else:
            self.sub_title = ""

    def _update_status(self, status: str) -> None:
        if self._status_widget:
            self._status_widget.update(status)

    def _set_input(self, text: str) -> None:
        if self._input is None:
            return
        # programmatic updates must not schedule another scan
        with self._input.prevent(Input.Changed):
            self._input.value = text

    def _update_progress(self, message: str, increment: float) -> None:
        if self._progress is None:
            return
        if not message:
            self._progress.update(progress=0)
            return
        self._progress.advance(increment)
        self._update_status(message)

    def _log_line(self, line: str) -> None:
        telemetry.get_logger("condenser.app").debug(line)


async def condense_to_text(
    document: TextDocument, filter_text: str, *, config: CondenserConfig
) -> tuple[Text, str]:
    """One-shot scan used by ``--print``; returns the rendering and any error."""

    if not filter_text:
        return render_lines(fold_document(document, ())), ""
    try:
        pattern = compile_pattern(filter_text)
    except InvalidPatternError as exc:
        return Text(), str(exc)
    view = await scan(document, pattern, limits=config.limits)
    error = view.error or ("" if view.match_count else NO_MATCHES)
    if error:
        return Text(), error
    return render_lines(fold_document(document, view.ranges, view.highlights)), ""


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Condense a text file down to the lines matching a pattern."
    )
    parser.add_argument("path", type=Path, help="File to condense")
    parser.add_argument(
        "--filter",
        default=os.environ.get("CONDENSER_FILTER", ""),
        help="Initial filter (regular expression)",
    )
    parser.add_argument(
        "--print",
        dest="print_only",
        action="store_true",
        help="Condense once and print the result instead of starting the UI",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="With --print, log scan progress at debug level",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    config = CondenserConfig.from_env()
    document = TextDocument.from_path(args.path)

    if args.print_only:
        if args.verbose:
            telemetry.configure(preset="verbose")
        rendered, error = asyncio.run(
            condense_to_text(document, args.filter, config=config)
        )
        if error:
            Console(stderr=True).print(f"condenser: {error}", markup=False)
            return 1
        Console().print(rendered, end="")
        return 0

    telemetry.configure(preset="quiet")
    app = CondenserApp(document, seed=args.filter or None, config=config)
    app.run()
    return 0


if __name__ == "__main__":  # pragma: no cover - manual run
    sys.exit(main())
