import json
import re
from collections.abc import Generator
from typing import Any

from .events import CONSOLE, EVENT_KINDS


class EventLineParser:
    """Parses event source output and emits (kind, payload) pairs.

    Each event is a JSON object on its own line with an ``event`` key naming
    the kind, e.g. ``{"event": "WORKER_MSG", "id": "tsc", "msg": "ok"}``.
    Anything else the source prints becomes a console message.
    """

    def __init__(self) -> None:
        self.ansi_escape = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")

    def parse_line(self, line: str) -> Generator[tuple[str, dict[str, Any]], None, None]:
        """Parses a single line of source output."""
        clean_line = self.ansi_escape.sub("", line).strip()
        if not clean_line:
            return

        if clean_line.startswith("{"):
            try:
                record = json.loads(clean_line)
            except json.JSONDecodeError:
                record = None
            if isinstance(record, dict) and record.get("event") in EVENT_KINDS:
                kind = record.pop("event")
                yield kind, record
                return

        yield CONSOLE, {"level": "log", "args": [clean_line]}
