import json
import math
import re
from dataclasses import dataclass, field
from typing import Any

from .state import Label, StyledLabel, WorkerState

WORKER_MSG = "WORKER_MSG"
WORKER_UPDATE = "WORKER_UPDATE"
WORKER_COMPLETE = "WORKER_COMPLETE"
WORKER_RESET = "WORKER_RESET"
CONSOLE = "CONSOLE"
NEW_SESSION = "NEW_SESSION"
MISSING_WEB_MODULE = "MISSING_WEB_MODULE"

EVENT_KINDS = (
    WORKER_MSG,
    WORKER_UPDATE,
    WORKER_COMPLETE,
    WORKER_RESET,
    CONSOLE,
    NEW_SESSION,
    MISSING_WEB_MODULE,
)


class MalformedEventError(ValueError):
    """An event payload does not have the shape its kind requires."""


@dataclass
class WorkerOutput:
    id: str
    msg: str


@dataclass
class WorkerStatusUpdate:
    """A transient status label. ``state`` is None when the worker sent none."""

    id: str
    state: WorkerState | None


@dataclass
class WorkerCompleted:
    id: str
    error: Any = None


@dataclass
class WorkerReset:
    id: str


@dataclass
class ConsoleMessage:
    level: str
    args: list[Any] = field(default_factory=list)


@dataclass
class SessionStarted:
    pass


@dataclass
class MissingDependency:
    specifier: str
    is_installed: bool


DashboardEvent = (
    WorkerOutput
    | WorkerStatusUpdate
    | WorkerCompleted
    | WorkerReset
    | ConsoleMessage
    | SessionStarted
    | MissingDependency
)


def _require_str(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value:
        raise MalformedEventError(f"'{key}' must be a non-empty string, got {value!r}")
    return value


def parse_worker_state(raw: Any) -> WorkerState | None:
    """
    Convert a wire status into a WorkerState.

    Accepts a label string, a ``[label, style]`` pair or a
    ``{"label": ..., "style": ...}`` mapping. Returns None for an absent
    status and raises MalformedEventError for anything else.
    """
    if raw is None:
        return None
    if isinstance(raw, str):
        return Label(raw) if raw else None
    if isinstance(raw, (list, tuple)):
        if len(raw) == 2 and all(isinstance(part, str) for part in raw):
            return StyledLabel(raw[0], raw[1])
        raise MalformedEventError(f"state pair must be [label, style], got {raw!r}")
    if isinstance(raw, dict) and isinstance(raw.get("label"), str):
        style = raw.get("style")
        if isinstance(style, str) and style:
            return StyledLabel(raw["label"], style)
        return Label(raw["label"])
    raise MalformedEventError(f"unsupported state {raw!r}")


def decode_event(kind: str, payload: Any) -> DashboardEvent:
    """Build the typed event for a wire kind and its payload."""
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise MalformedEventError(f"payload must be an object, got {type(payload).__name__}")

    if kind == WORKER_MSG:
        msg = payload.get("msg")
        if not isinstance(msg, str):
            raise MalformedEventError(f"'msg' must be a string, got {msg!r}")
        return WorkerOutput(id=_require_str(payload, "id"), msg=msg)
    if kind == WORKER_UPDATE:
        return WorkerStatusUpdate(
            id=_require_str(payload, "id"), state=parse_worker_state(payload.get("state"))
        )
    if kind == WORKER_COMPLETE:
        return WorkerCompleted(id=_require_str(payload, "id"), error=payload.get("error"))
    if kind == WORKER_RESET:
        return WorkerReset(id=_require_str(payload, "id"))
    if kind == CONSOLE:
        level = _require_str(payload, "level")
        args = payload.get("args", [])
        if not isinstance(args, (list, tuple)):
            raise MalformedEventError(f"'args' must be a list, got {args!r}")
        return ConsoleMessage(level=level, args=list(args))
    if kind == NEW_SESSION:
        return SessionStarted()
    if kind == MISSING_WEB_MODULE:
        return MissingDependency(
            specifier=_require_str(payload, "specifier"),
            is_installed=bool(payload.get("isInstalled")),
        )
    raise MalformedEventError(f"unknown event kind {kind!r}")


_FORMAT_SPEC = re.compile(r"%[sdifjoOc%]")


def _to_json(value: Any) -> str:
    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        return repr(value)


def _inspect(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return _to_json(value)


def _format_number(value: Any, spec: str) -> str:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return "NaN"
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return "Infinity" if number > 0 else "-Infinity"
    if spec == "%i" or number.is_integer():
        return str(int(number))
    return str(number)


def format_console_args(args: list[Any]) -> str:
    """
    Format console arguments the way a JavaScript console would.

    A leading string is treated as a printf-style template (``%s``, ``%d``,
    ``%i``, ``%f``, ``%j``, ``%o``, ``%O``, ``%c`` and ``%%``); leftover
    arguments are appended separated by spaces.
    """
    if not args:
        return ""
    first, rest = args[0], list(args[1:])
    if not isinstance(first, str) or not rest:
        return " ".join(_inspect(value) for value in [first, *rest])

    def _substitute(match: re.Match) -> str:
        spec = match.group(0)
        if spec == "%%":
            return "%"
        if not rest:
            return spec
        value = rest.pop(0)
        if spec == "%s":
            return _inspect(value)
        if spec in ("%d", "%i", "%f"):
            return _format_number(value, spec)
        if spec == "%j":
            return _to_json(value)
        if spec == "%c":
            return ""
        return _inspect(value)

    head = _FORMAT_SPEC.sub(_substitute, first)
    return " ".join([head, *(_inspect(value) for value in rest)])
