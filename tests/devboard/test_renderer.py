import pytest

from devboard.components.tui.event_bus import EventBus
from devboard.components.tui.event_handler import EventReducer
from devboard.components.tui.renderer import (
    DOT_COLUMN,
    AggregateStatus,
    aggregate_status,
    export_frame,
    render,
    resolve_style,
    split_specifier,
    status_badge,
)
from devboard.components.tui.session import BuildInfo, ServeInfo, SessionInfo
from devboard.components.tui.state import Label, StateStore, StyledLabel, WorkerRecord
from devboard.models import WorkerConfig


def _session_with(*workers: WorkerConfig):
    store = StateStore()
    store.init_workers(workers)
    bus = EventBus()
    EventReducer(store, lambda: None).subscribe(bus)
    return store, bus


def _line_for(worker_id: str, badge: str) -> str:
    return f"  {worker_id}{'.' * (DOT_COLUMN - len(worker_id))}[{badge}]"


def test_done_and_failed_workers_end_with_error_exit():
    store, bus = _session_with(WorkerConfig(id="a"), WorkerConfig(id="b"))
    bus.emit("WORKER_COMPLETE", {"id": "a"})
    bus.emit("WORKER_COMPLETE", {"id": "b", "error": True})

    frame = render(store.get_snapshot(), SessionInfo())

    assert frame.aggregate == AggregateStatus(done=True, error=True)
    assert frame.exit_code == 1
    plain = frame.body.plain
    assert _line_for("a", "DONE") in plain
    assert _line_for("b", "FAILED") in plain
    assert "⚠️  Finished, with errors." in plain
    assert "Build Complete!" not in plain


def test_full_frame_layout():
    store, bus = _session_with(WorkerConfig(id="a"), WorkerConfig(id="b"))
    bus.emit("WORKER_COMPLETE", {"id": "a"})
    bus.emit("WORKER_COMPLETE", {"id": "b", "error": True})

    frame = render(store.get_snapshot(), SessionInfo(title="Snowpack"))

    assert frame.body.plain == (
        "Snowpack\n\n"
        + _line_for("a", "DONE") + "\n"
        + _line_for("b", "FAILED") + "\n"
        + "\n"
        + "▼ Console\n\n  No output, yet.\n\n"
        + "▼ Result\n\n  ⚠️  Finished, with errors.\n\n"
    )


def test_all_done_without_errors_reports_build_complete():
    store, bus = _session_with(WorkerConfig(id="a"))
    bus.emit("WORKER_COMPLETE", {"id": "a"})

    frame = render(store.get_snapshot(), SessionInfo())

    assert frame.aggregate == AggregateStatus(done=True, error=False)
    assert frame.exit_code is None
    assert "▶ Build Complete!" in frame.body.plain


def test_in_progress_run_prints_no_result_line():
    store, bus = _session_with(WorkerConfig(id="a"), WorkerConfig(id="b"))
    bus.emit("WORKER_COMPLETE", {"id": "a"})

    frame = render(store.get_snapshot(), SessionInfo())

    assert frame.aggregate == AggregateStatus(done=False, error=False)
    assert "Build Complete!" not in frame.body.plain
    assert "Result" not in frame.body.plain


def test_no_workers_aggregate_is_done_without_errors():
    assert aggregate_status([]) == AggregateStatus(done=True, error=False)
    store, _bus = _session_with()
    assert "Build Complete!" in render(store.get_snapshot(), SessionInfo()).body.plain


def test_missing_dependency_banner_takes_over_the_frame():
    store, bus = _session_with(WorkerConfig(id="a"))
    bus.emit("WORKER_MSG", {"id": "a", "msg": "compiled 3 files"})
    bus.emit("CONSOLE", {"level": "info", "args": ["hello"]})
    bus.emit("WORKER_COMPLETE", {"id": "a", "error": True})
    bus.emit("MISSING_WEB_MODULE", {"specifier": "@scope/pkg/deep", "isInstalled": False})

    frame = render(store.get_snapshot(), SessionInfo(title="Snowpack"))
    plain = frame.body.plain

    assert "Package @scope/pkg could not be found!" in plain
    assert "Imported as @scope/pkg/deep" in plain
    assert "Press Enter to install it with Snowpack." in plain
    assert "compiled 3 files" not in plain
    assert "▼ Console" not in plain
    assert "Finished, with errors." not in plain
    assert frame.exit_code is None
    # The worker list is still shown above the banner.
    assert _line_for("a", "FAILED") in plain


def test_resolvable_missing_dependency_is_reported_as_found():
    store, bus = _session_with()
    bus.emit("MISSING_WEB_MODULE", {"specifier": "lodash", "isInstalled": True})

    plain = render(store.get_snapshot(), SessionInfo()).body.plain

    assert "New import lodash found!" in plain
    assert "Imported as" not in plain
    assert "Press Enter" in plain


def test_console_cleared_placeholder_after_new_session():
    store, bus = _session_with()
    bus.emit("CONSOLE", {"level": "info", "args": ["hello"]})
    assert "  [info] hello" in render(store.get_snapshot(), SessionInfo()).body.plain

    bus.emit("NEW_SESSION", {})

    plain = render(store.get_snapshot(), SessionInfo()).body.plain
    assert "▼ Console\n\n  Output cleared." in plain
    assert "hello" not in plain


def test_worker_output_is_trimmed_and_indented():
    store, bus = _session_with(WorkerConfig(id="tsc"), WorkerConfig(id="idle"))
    bus.emit("WORKER_MSG", {"id": "tsc", "msg": "\nsrc/a.ts ok\nsrc/b.ts ok\n\n"})

    plain = render(store.get_snapshot(), SessionInfo()).body.plain

    assert "▼ tsc\n\n  src/a.ts ok\n  src/b.ts ok\n\n" in plain
    assert "▼ idle" not in plain


def test_failed_worker_output_header_uses_error_style():
    store, bus = _session_with(WorkerConfig(id="tsc"))
    bus.emit("WORKER_MSG", {"id": "tsc", "msg": "error TS2322"})
    bus.emit("WORKER_COMPLETE", {"id": "tsc", "error": True})

    body = render(store.get_snapshot(), SessionInfo()).body
    header_start = body.plain.index("▼ tsc")
    styles = [
        str(span.style)
        for span in body.spans
        if span.start == header_start and span.end == header_start + len("▼ tsc")
    ]
    assert styles == ["bold underline red"]


def test_serve_mode_block_and_watching_badge():
    store, _bus = _session_with(WorkerConfig(id="watcher", watch=True), WorkerConfig(id="once"))
    session = SessionInfo(serve=ServeInfo(port=8080, ips=("192.168.1.5",), start_time_ms=42))

    plain = render(store.get_snapshot(), session).body.plain

    assert "  http://localhost:8080 > http://192.168.1.5:8080\n" in plain
    assert "  Server started in 42ms.\n\n" in plain
    assert _line_for("watcher", "WATCHING") in plain
    assert _line_for("once", "READY") in plain


def test_build_mode_block_and_no_watching_badge():
    store, _bus = _session_with(WorkerConfig(id="watcher", watch=True))
    session = SessionInfo(build=BuildInfo(dest="dist/"))

    plain = render(store.get_snapshot(), session).body.plain

    assert "  dist/ Building your application...\n\n" in plain
    assert "http://" not in plain
    assert _line_for("watcher", "READY") in plain


def test_session_without_mode_prints_no_mode_block():
    store, _bus = _session_with(WorkerConfig(id="a"))
    plain = render(store.get_snapshot(), SessionInfo()).body.plain
    assert plain.startswith("Devboard\n\n" + _line_for("a", "READY"))


def test_status_badge_precedence():
    config = WorkerConfig(id="w", watch=True)

    styled = WorkerRecord(config=config, state=StyledLabel("bundling", "yellow"), done=True, error=True)
    badge = status_badge(styled, serving=True)
    assert (badge.plain, str(badge.style)) == ("bundling", "yellow")

    labelled = WorkerRecord(config=config, state=Label("transpiling"), done=True)
    badge = status_badge(labelled, serving=True)
    assert (badge.plain, str(badge.style)) == ("transpiling", "dim")

    failed = WorkerRecord(config=config, done=True, error="boom")
    assert status_badge(failed, serving=True).plain == "FAILED"

    done = WorkerRecord(config=config, done=True)
    assert status_badge(done, serving=True).plain == "DONE"

    assert status_badge(WorkerRecord(config=config), serving=True).plain == "WATCHING"
    assert status_badge(WorkerRecord(config=config), serving=False).plain == "READY"


def test_long_worker_ids_get_no_dots():
    worker_id = "x" * (DOT_COLUMN + 3)
    store, _bus = _session_with(WorkerConfig(id=worker_id))
    assert f"  {worker_id}[READY]" in render(store.get_snapshot(), SessionInfo()).body.plain


@pytest.mark.parametrize(
    "tag, expected",
    [
        ("yellow", "yellow"),
        ("bold green", "bold green"),
        ("gray", "bright_black"),
        ("yellowBright", "bright_yellow"),
        ("inverse", "reverse"),
        ("notacolor", "dim"),
        ("", "dim"),
    ],
)
def test_resolve_style(tag, expected):
    assert resolve_style(tag) == expected


def test_unknown_style_tag_falls_back_to_muted_badge():
    record = WorkerRecord(config=WorkerConfig(id="w"), state=StyledLabel("odd", "sparkly"))
    assert str(status_badge(record, serving=False).style) == "dim"


@pytest.mark.parametrize(
    "specifier, expected",
    [
        ("react", ("react", "")),
        ("lodash/merge", ("lodash", "merge")),
        ("@scope/pkg", ("@scope/pkg", "")),
        ("@scope/pkg/deep/file.js", ("@scope/pkg", "deep/file.js")),
        ("@scope", ("@scope", "")),
    ],
)
def test_split_specifier(specifier, expected):
    assert split_specifier(specifier) == expected


def test_rendering_is_idempotent():
    store, bus = _session_with(WorkerConfig(id="a", watch=True), WorkerConfig(id="b"))
    bus.emit("WORKER_UPDATE", {"id": "a", "state": ["bundling", "yellow"]})
    bus.emit("WORKER_MSG", {"id": "b", "msg": "hello\nworld"})
    bus.emit("CONSOLE", {"level": "warn", "args": ["careful"]})
    session = SessionInfo(serve=ServeInfo(port=3000, ips=("10.0.0.2",), start_time_ms=7))

    first = export_frame(render(store.get_snapshot(), session))
    second = export_frame(render(store.get_snapshot(), session))

    assert first == second
    assert "\x1b[" in first


def test_export_frame_without_color_matches_plain_text():
    store, bus = _session_with(WorkerConfig(id="a"))
    bus.emit("WORKER_UPDATE", {"id": "a", "state": "bundling"})
    frame = render(store.get_snapshot(), SessionInfo())

    assert export_frame(frame, color=False) == frame.body.plain
