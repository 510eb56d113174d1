from __future__ import annotations

import asyncio
import functools
import itertools
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

import pytest

from condenser.config import CondenserConfig, ScanLimits
from condenser.document import TextDocument
from condenser.scan import (
    ABORTED,
    INVALID_PATTERN,
    NO_MATCHES,
    ErrorKind,
    scan,
)
from condenser.session import (
    CondenseCoordinator,
    CoordinatorHooks,
    SessionExistsError,
    SessionState,
    UnknownSessionError,
)


@dataclass
class HookRecorder:
    refreshed: List[str] = field(default_factory=list)
    progress: List[tuple[str, str, float]] = field(default_factory=list)
    messages: List[tuple[str, str]] = field(default_factory=list)
    inputs: List[tuple[str, str]] = field(default_factory=list)
    active: List[tuple[str, ...]] = field(default_factory=list)

    def hooks(self) -> CoordinatorHooks:
        return CoordinatorHooks(
            refresh=self.refreshed.append,
            report_progress=lambda doc, msg, inc: self.progress.append((doc, msg, inc)),
            show_message=lambda doc, text: self.messages.append((doc, text)),
            set_input=lambda doc, text: self.inputs.append((doc, text)),
            update_active=self.active.append,
        )


def make_document(*lines: str) -> TextDocument:
    return TextDocument.from_lines(
        lines or ("foo", "bar", "baz foo", "qux", "foo end")
    )


def make_recording_scanner(calls: List[Any], timers: Any = None):
    async def scanner(document, pattern, on_progress=None, *, token=None, limits=None):
        calls.append((pattern.pattern, timers.now if timers else None))
        return await scan(document, pattern, on_progress, token=token, limits=limits)

    return scanner


def make_gated_scanner(
    calls: List[str], gate: asyncio.Event, *, gated: Iterable[str], **scan_kwargs: Any
):
    gated = set(gated)
    running: Dict[str, int] = {"now": 0, "peak": 0}

    async def scanner(document, pattern, on_progress=None, *, token=None, limits=None):
        calls.append(pattern.pattern)
        running["now"] += 1
        running["peak"] = max(running["peak"], running["now"])
        try:
            if pattern.pattern in gated:
                await gate.wait()
            return await scan(
                document, pattern, on_progress, token=token, limits=limits, **scan_kwargs
            )
        finally:
            running["now"] -= 1

    return scanner, running


def ticking_clock():
    counter = itertools.count()
    return lambda: next(counter)


def test_activate_with_seed_scans_immediately(timers) -> None:
    recorder = HookRecorder()

    async def run():
        coordinator = CondenseCoordinator(recorder.hooks(), timers=timers)
        session = coordinator.activate("doc", make_document(), seed="foo")
        await coordinator.join()
        return coordinator, session

    coordinator, session = asyncio.run(run())

    assert session.current_filter == "foo"
    assert [(r.start, r.end) for r in coordinator.ranges_for("doc")] == [(0, 1), (2, 3)]
    assert len(coordinator.highlights_for("doc")) == 3
    assert recorder.inputs == [("doc", "foo")]
    assert recorder.refreshed == ["doc"]
    assert recorder.active[-1] == ("doc",)
    assert coordinator.active_documents() == ("doc",)
    assert session.state is SessionState.IDLE


def test_rapid_changes_coalesce_into_one_scan(timers) -> None:
    calls: List[Any] = []

    async def run():
        coordinator = CondenseCoordinator(
            timers=timers, scanner=make_recording_scanner(calls, timers)
        )
        coordinator.open("doc", make_document("a", "abc", "abcd"))
        coordinator.change("doc", "a")
        timers.advance(0.05)
        coordinator.change("doc", "ab")
        timers.advance(0.27)
        coordinator.change("doc", "abc")
        timers.advance(0.29)
        await coordinator.join()
        assert calls == []
        timers.advance(0.01)
        await coordinator.join()
        return coordinator

    coordinator = asyncio.run(run())

    assert [call[0] for call in calls] == ["abc"]
    assert calls[0][1] == pytest.approx(0.62)
    assert coordinator.get("doc").current_filter == "abc"


def test_request_while_busy_is_parked_then_expedited(timers) -> None:
    calls: List[str] = []

    async def run():
        gate = asyncio.Event()
        scanner, running = make_gated_scanner(calls, gate, gated=["first"])
        coordinator = CondenseCoordinator(timers=timers, scanner=scanner)
        session = coordinator.activate(
            "doc", make_document("first", "second", "third"), seed="first"
        )
        await asyncio.sleep(0)
        assert session.state is SessionState.SCANNING

        coordinator.change("doc", "second")
        assert session.abort_requested
        timers.advance(0.3)
        await asyncio.sleep(0)

        assert calls == ["first"]
        assert session.pending_request is not None
        assert [timer.delay for timer in timers.armed()] == [0.3]

        gate.set()
        await coordinator.join()
        assert [timer.delay for timer in timers.armed()] == [0.0]

        timers.advance(0.0)
        await coordinator.join()
        return session, running

    session, running = asyncio.run(run())

    assert calls == ["first", "second"]
    assert running["peak"] == 1
    assert session.current_filter == "second"
    assert session.current_view is not None


def test_sessions_scan_independently(timers) -> None:
    calls: List[str] = []

    async def run():
        gate = asyncio.Event()
        scanner, _ = make_gated_scanner(calls, gate, gated=["slow"])
        coordinator = CondenseCoordinator(timers=timers, scanner=scanner)
        slow = coordinator.activate("a", make_document("slow", "x"), seed="slow")
        fast = coordinator.activate("b", make_document(), seed="foo")
        for _ in range(3):
            await asyncio.sleep(0)
        assert slow.busy
        assert fast.current_filter == "foo"
        gate.set()
        await coordinator.join()
        return slow

    slow = asyncio.run(run())

    assert slow.current_filter == "slow"


def test_stop_clears_view_and_filter(timers) -> None:
    recorder = HookRecorder()

    async def run():
        coordinator = CondenseCoordinator(recorder.hooks(), timers=timers)
        session = coordinator.activate("doc", make_document(), seed="foo")
        await coordinator.join()
        coordinator.change("doc", "bar")
        coordinator.stop("doc")
        return coordinator, session

    coordinator, session = asyncio.run(run())

    assert session.current_view is None
    assert session.current_filter == ""
    assert session.pending_request is None
    assert timers.armed() == []
    assert coordinator.ranges_for("doc") == ()
    assert coordinator.highlights_for("doc") == ()
    assert recorder.refreshed[-1] == "doc"
    assert recorder.active[-1] == ()
    assert session.state is SessionState.IDLE


def test_stop_during_scan_discards_result(timers) -> None:
    calls: List[str] = []

    async def run():
        gate = asyncio.Event()
        scanner, _ = make_gated_scanner(calls, gate, gated=["foo"])
        coordinator = CondenseCoordinator(timers=timers, scanner=scanner)
        session = coordinator.activate("doc", make_document(), seed="foo")
        await asyncio.sleep(0)
        coordinator.stop("doc")
        gate.set()
        await coordinator.join()
        return session

    session = asyncio.run(run())

    assert calls == ["foo"]
    assert session.current_filter == ""
    assert session.current_view is None
    assert session.error == ""


def test_typing_after_stop_survives_the_stopped_scan(timers) -> None:
    calls: List[str] = []

    async def run():
        gate = asyncio.Event()
        scanner, running = make_gated_scanner(calls, gate, gated=["foo"])
        coordinator = CondenseCoordinator(timers=timers, scanner=scanner)
        session = coordinator.activate("doc", make_document(), seed="foo")
        await asyncio.sleep(0)
        coordinator.stop("doc")
        coordinator.change("doc", "bar")
        gate.set()
        await coordinator.join()
        assert session.pending_request is not None

        timers.advance(1.0)
        await coordinator.join()
        return session, running

    session, running = asyncio.run(run())

    assert calls == ["foo", "bar"]
    assert running["peak"] == 1
    assert session.current_filter == "bar"
    assert session.current_view is not None


def test_close_during_scan_discards_result(timers) -> None:
    calls: List[str] = []
    recorder = HookRecorder()

    async def run():
        gate = asyncio.Event()
        scanner, _ = make_gated_scanner(calls, gate, gated=["foo"])
        coordinator = CondenseCoordinator(
            recorder.hooks(), timers=timers, scanner=scanner
        )
        session = coordinator.activate("doc", make_document(), seed="foo")
        await asyncio.sleep(0)
        coordinator.change("doc", "bar")
        coordinator.close("doc")
        gate.set()
        await coordinator.join()
        return coordinator, session

    coordinator, session = asyncio.run(run())

    assert calls == ["foo"]
    assert session.current_filter == ""
    assert session.current_view is None
    assert session.token.cancelled
    assert timers.armed() == []
    assert coordinator.get("doc") is None
    assert coordinator.active_documents() == ()
    assert recorder.refreshed == []
    assert recorder.active[-1] == ()


def test_zero_matches_reports_no_matches(timers) -> None:
    recorder = HookRecorder()

    async def run():
        coordinator = CondenseCoordinator(recorder.hooks(), timers=timers)
        session = coordinator.activate("doc", make_document(), seed="zzz")
        await coordinator.join()
        return session

    session = asyncio.run(run())

    assert session.error == NO_MATCHES
    assert session.error_kind is ErrorKind.NO_MATCHES
    assert session.current_view is None
    assert session.current_filter == "zzz"
    assert recorder.messages[-1] == ("doc", NO_MATCHES)
    assert session.state is SessionState.ERROR


def test_invalid_pattern_reported_without_scanning(timers) -> None:
    calls: List[Any] = []

    async def run():
        coordinator = CondenseCoordinator(
            timers=timers, scanner=make_recording_scanner(calls)
        )
        session = coordinator.activate("doc", make_document(), seed="(")
        await coordinator.join()
        return session

    session = asyncio.run(run())

    assert calls == []
    assert session.error == INVALID_PATTERN
    assert session.error_kind is ErrorKind.INVALID_PATTERN
    assert session.current_view is None


def test_empty_filter_is_inactive_not_error(timers) -> None:
    recorder = HookRecorder()

    async def run():
        coordinator = CondenseCoordinator(recorder.hooks(), timers=timers)
        session = coordinator.activate("doc", make_document())
        await coordinator.join()
        assert session.error == ""
        assert session.current_view is None

        coordinator.change("doc", "foo")
        timers.advance(0.3)
        await coordinator.join()
        assert session.current_view is not None

        coordinator.change("doc", "")
        timers.advance(0.3)
        await coordinator.join()
        return session

    session = asyncio.run(run())

    assert session.current_view is None
    assert session.current_filter == ""
    assert session.error == ""
    assert recorder.messages[-1] == ("doc", "")


def test_accept_commits_history_and_skips_rescan_for_same_filter(timers) -> None:
    calls: List[Any] = []

    async def run():
        coordinator = CondenseCoordinator(
            timers=timers, scanner=make_recording_scanner(calls)
        )
        session = coordinator.activate("doc", make_document(), seed="foo")
        await coordinator.join()
        coordinator.accept("doc", "foo")
        await coordinator.join()
        assert len(calls) == 1

        coordinator.accept("doc", "bar")
        await coordinator.join()
        coordinator.accept("doc", "foo")
        await coordinator.join()
        return session

    session = asyncio.run(run())

    assert [call[0] for call in calls] == ["foo", "bar", "foo"]
    assert list(session.history.entries) == ["foo", "bar"]
    assert session.current_filter == "foo"


def test_accept_empty_value_stops(timers) -> None:
    async def run():
        coordinator = CondenseCoordinator(timers=timers)
        session = coordinator.activate("doc", make_document(), seed="foo")
        await coordinator.join()
        coordinator.accept("doc", "")
        await coordinator.join()
        return session

    session = asyncio.run(run())

    assert session.current_view is None
    assert session.current_filter == ""
    assert list(session.history.entries) == []


def test_history_navigation_schedules_with_history_delay(timers) -> None:
    recorder = HookRecorder()

    async def run():
        coordinator = CondenseCoordinator(recorder.hooks(), timers=timers)
        session = coordinator.activate("doc", make_document(), seed="foo")
        await coordinator.join()
        coordinator.accept("doc", "foo")
        coordinator.accept("doc", "baz")
        await coordinator.join()
        assert list(session.history.entries) == ["baz", "foo"]

        assert coordinator.history_prev("doc") == "baz"
        assert timers.armed() == []

        assert coordinator.history_prev("doc") == "foo"
        assert recorder.inputs[-1] == ("doc", "foo")
        assert [timer.delay for timer in timers.armed()] == [0.6]
        timers.advance(0.59)
        assert session.current_filter == "baz"
        timers.advance(0.01)
        await coordinator.join()
        assert session.current_filter == "foo"

        assert coordinator.history_prev("doc") == "foo"
        assert session.history.cursor == 1

        assert coordinator.history_next("doc") == "baz"
        assert coordinator.history_next("doc") == ""
        assert recorder.inputs[-1] == ("doc", "")
        timers.advance(0.6)
        await coordinator.join()
        return session

    session = asyncio.run(run())

    assert session.current_filter == ""
    assert session.current_view is None
    assert session.history.cursor == -1


def test_progress_reports_increment_and_message(timers) -> None:
    recorder = HookRecorder()
    config = CondenserConfig(limits=ScanLimits(check_every_lines=2))

    async def run():
        coordinator = CondenseCoordinator(
            recorder.hooks(),
            config=config,
            timers=timers,
            scanner=functools.partial(scan, clock=ticking_clock()),
        )
        coordinator.activate("doc", make_document(*(["foo", "bar"] * 5)), seed="foo")
        await coordinator.join()

    asyncio.run(run())

    assert [entry[2] for entry in recorder.progress] == pytest.approx(
        [0.0, 20.0, 20.0, 20.0, 20.0]
    )
    assert recorder.progress[0][1] == "line 0 - 0 matches found"
    assert recorder.progress[1][1] == "line 2 - 1 matches found"


def test_cancel_aborts_running_scan_quietly(timers) -> None:
    calls: List[str] = []
    recorder = HookRecorder()
    config = CondenserConfig(limits=ScanLimits(check_every_lines=1))

    async def run():
        gate = asyncio.Event()
        scanner, _ = make_gated_scanner(
            calls, gate, gated=["foo"], clock=ticking_clock()
        )
        coordinator = CondenseCoordinator(
            recorder.hooks(), config=config, timers=timers, scanner=scanner
        )
        session = coordinator.activate("doc", make_document(), seed="foo")
        await asyncio.sleep(0)
        coordinator.cancel("doc")
        gate.set()
        await coordinator.join()
        assert session.error == ABORTED
        assert session.current_view is None
        assert session.pending_request is None
        assert recorder.messages[-1] == ("doc", "")

        # an aborted result does not count as having scanned the filter
        coordinator.accept("doc", "foo")
        await coordinator.join()
        return session

    session = asyncio.run(run())

    assert calls == ["foo", "foo"]
    assert session.error == ""
    assert session.current_view is not None


def test_opening_a_live_document_twice_raises(timers) -> None:
    coordinator = CondenseCoordinator(timers=timers)
    coordinator.open("doc", make_document())

    with pytest.raises(SessionExistsError) as info:
        coordinator.open("doc", make_document())

    assert info.value.document_id == "doc"


def test_events_for_unknown_document_raise(timers) -> None:
    coordinator = CondenseCoordinator(timers=timers)

    with pytest.raises(UnknownSessionError):
        coordinator.change("missing", "foo")
    assert coordinator.ranges_for("missing") == ()


def test_close_cancels_pending_and_forgets_session(timers) -> None:
    recorder = HookRecorder()
    coordinator = CondenseCoordinator(recorder.hooks(), timers=timers)
    session = coordinator.open("doc", make_document())
    coordinator.change("doc", "foo")
    assert len(timers.armed()) == 1

    coordinator.close("doc")

    assert timers.armed() == []
    assert coordinator.get("doc") is None
    assert session.token.cancelled
    assert recorder.active[-1] == ()
    coordinator.open("doc", make_document())
