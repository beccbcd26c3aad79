"""
Frame rendering for the dashboard.

``render`` is a pure function of the state snapshot and the static session
info. Every call builds the complete frame from scratch, so rendering the
same snapshot twice yields identical output.
"""
from __future__ import annotations

import io
from dataclasses import dataclass
from functools import reduce

from rich.console import Console
from rich.errors import StyleSyntaxError
from rich.style import Style
from rich.text import Text

from .session import SessionInfo
from .state import Label, SessionState, StyledLabel, WorkerRecord

DOT_COLUMN = 24

STYLE_TITLE = "bold"
STYLE_URL = "bold cyan"
STYLE_URL_SEPARATOR = "cyan"
STYLE_MUTED = "dim"
STYLE_ERROR = "red"
STYLE_SUCCESS = "green"
STYLE_HEADER = "bold underline"
STYLE_HEADER_ERROR = "bold underline red"
STYLE_HEADER_SUCCESS = "bold underline green"

# Style names used by Node terminal libraries that rich spells differently.
STYLE_ALIASES = {
    "gray": "bright_black",
    "grey": "bright_black",
    "inverse": "reverse",
    "strikethrough": "strike",
    "hidden": "conceal",
    "reset": "none",
}


@dataclass(frozen=True)
class AggregateStatus:
    done: bool
    error: bool


@dataclass(frozen=True)
class Frame:
    """A complete terminal frame.

    ``exit_code`` is set when the frame reports a failed run and the host
    should terminate with that status.
    """

    body: Text
    aggregate: AggregateStatus
    clear_screen: bool = True
    exit_code: int | None = None


def resolve_style(tag: str) -> str:
    """Map a worker-supplied style tag to a rich style, falling back to muted."""
    words = []
    for word in tag.split():
        word = STYLE_ALIASES.get(word, word)
        if word.endswith("Bright") and len(word) > len("Bright"):
            word = f"bright_{word[: -len('Bright')]}"
        words.append(word)
    name = " ".join(words)
    if not name:
        return STYLE_MUTED
    try:
        Style.parse(name)
    except StyleSyntaxError:
        return STYLE_MUTED
    return name


def status_badge(record: WorkerRecord, serving: bool) -> Text:
    """The bracketed status of a worker. Checks run in priority order."""
    state = record.state
    if isinstance(state, StyledLabel):
        return Text(state.text, style=resolve_style(state.style))
    if isinstance(state, Label):
        return Text(state.text, style=STYLE_MUTED)
    if record.done:
        if record.error:
            return Text("FAILED", style=STYLE_ERROR)
        return Text("DONE", style=STYLE_SUCCESS)
    if serving and record.config.watch:
        return Text("WATCHING", style=STYLE_MUTED)
    return Text("READY", style=STYLE_MUTED)


def aggregate_status(records: list[WorkerRecord]) -> AggregateStatus:
    """Fold all workers into one verdict. No workers means done without errors."""
    return reduce(
        lambda result, record: AggregateStatus(
            done=result.done and record.done,
            error=result.error or bool(record.error),
        ),
        records,
        AggregateStatus(done=True, error=False),
    )


def split_specifier(specifier: str) -> tuple[str, str]:
    """Split an import specifier into package name and deep import path.

    ``@scope/pkg/deep/file`` gives ``("@scope/pkg", "deep/file")``.
    """
    name, *deep_parts = specifier.split("/")
    if name.startswith("@") and deep_parts:
        name = f"{name}/{deep_parts.pop(0)}"
    return name, "/".join(deep_parts)


def _indent(text: str) -> str:
    return "  " + text.strip().replace("\n", "\n  ")


def _render_session_mode(frame: Text, session: SessionInfo) -> None:
    serve = session.serve
    if serve:
        frame.append("  ")
        frame.append(f"http://{serve.host}:{serve.port}", style=STYLE_URL)
        for ip in serve.ips:
            frame.append(" > ", style=STYLE_URL_SEPARATOR)
            frame.append(f"http://{ip}:{serve.port}", style=STYLE_URL)
        frame.append("\n")
        frame.append(f"  Server started in {serve.start_time_ms}ms.", style=STYLE_MUTED)
        frame.append("\n\n")
    if session.build:
        frame.append("  ")
        frame.append(session.build.dest, style=STYLE_URL)
        frame.append(" Building your application...", style=STYLE_MUTED)
        frame.append("\n\n")


def _render_missing_module(frame: Text, snapshot: SessionState, title: str) -> None:
    specifier = snapshot.missing_module or ""
    package_name, deep_path = split_specifier(specifier)
    frame.append(f"▼ {title}", style=STYLE_HEADER_ERROR)
    frame.append("\n\n")
    if snapshot.missing_module_resolvable:
        frame.append("  New import ")
        frame.append(package_name, style="bold")
        frame.append(" found!\n")
    else:
        frame.append("  Package ")
        frame.append(package_name, style="bold")
        frame.append(" could not be found!\n")
    if deep_path:
        frame.append(f"  Imported as {specifier}", style=STYLE_MUTED)
        frame.append("\n")
    frame.append("\n  ")
    frame.append("Press Enter", style="bold")
    frame.append(f" to install it with {title}.\n\n")


def _render_output_section(
    frame: Text, header: str, output: str, was_cleared: bool, header_style: str
) -> None:
    frame.append(f"▼ {header}", style=header_style)
    frame.append("\n\n")
    if output:
        frame.append(_indent(output))
    elif was_cleared:
        frame.append("  Output cleared.", style=STYLE_MUTED)
    else:
        frame.append("  No output, yet.", style=STYLE_MUTED)
    frame.append("\n\n")


def render(snapshot: SessionState, session: SessionInfo) -> Frame:
    """Build the full frame for the current snapshot."""
    records = list(snapshot.workers.values())
    aggregate = aggregate_status(records)
    frame = Text()

    frame.append(session.title, style=STYLE_TITLE)
    frame.append("\n\n")
    _render_session_mode(frame, session)

    serving = session.serve is not None
    for record in records:
        worker_id = record.config.id
        frame.append(f"  {worker_id}")
        frame.append("." * max(0, DOT_COLUMN - len(worker_id)), style=STYLE_MUTED)
        frame.append("[")
        frame.append_text(status_badge(record, serving))
        frame.append("]\n")
    frame.append("\n")

    # A pending install prompt takes over the rest of the frame.
    if snapshot.missing_module:
        _render_missing_module(frame, snapshot, session.title)
        return Frame(body=frame, aggregate=aggregate)

    for record in records:
        if record.output:
            header_style = STYLE_HEADER_ERROR if record.error else STYLE_HEADER
            _render_output_section(
                frame, record.config.id, record.output, snapshot.was_cleared, header_style
            )
    _render_output_section(
        frame, "Console", snapshot.console_buffer, snapshot.was_cleared, STYLE_HEADER
    )

    exit_code = None
    if aggregate.error:
        frame.append("▼ Result", style=STYLE_HEADER_ERROR)
        frame.append("\n\n")
        frame.append("  ⚠️  Finished, with errors.", style=STYLE_ERROR)
        frame.append("\n\n")
        exit_code = 1
    elif aggregate.done:
        frame.append("▶ Build Complete!", style=STYLE_HEADER_SUCCESS)
        frame.append("\n\n")
    return Frame(body=frame, aggregate=aggregate, exit_code=exit_code)


def export_frame(frame: Frame, color: bool = True, width: int = 120) -> str:
    """Render a frame to the exact string a terminal would receive."""
    console = Console(
        file=io.StringIO(),
        force_terminal=color,
        no_color=not color,
        color_system="standard" if color else None,
        width=width,
        legacy_windows=False,
    )
    write_frame(console, frame)
    return console.file.getvalue()


def write_frame(console: Console, frame: Frame) -> None:
    """Clear the screen if the frame asks for it and print the frame body."""
    if frame.clear_screen:
        console.clear()
    console.print(frame.body, end="", soft_wrap=True)
