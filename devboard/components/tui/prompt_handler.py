from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from devboard.common.utils import read_stream_line

from .session import ServeInfo
from .state import StateStore

logger = logging.getLogger(__name__)


class PromptHandler:
    """Turns a line of terminal input into an install approval.

    Only meaningful while a missing dependency is pending; other input is
    ignored. Clearing the prompt is left to the next NEW_SESSION or
    MISSING_WEB_MODULE event.
    """

    def __init__(self, store: StateStore, serve: ServeInfo, redraw: Callable[[], Any]) -> None:
        self._store = store
        self._serve = serve
        self._redraw = redraw

    def handle_line(self, line: str) -> bool:
        """Handle one input line. Returns True when an install was requested."""
        snapshot = self._store.get_snapshot()
        if not snapshot.missing_module:
            logger.debug(f"Ignoring input with no pending prompt: {line.rstrip()!r}")
            return False

        specifier = snapshot.missing_module
        needs_install = not snapshot.missing_module_resolvable
        if self._serve.add_package is None:
            logger.warning(f"No installer configured, cannot add {specifier}")
        else:
            logger.info(f"User approved {specifier} (needs_install={needs_install})")
            try:
                self._serve.add_package(specifier, needs_install)
            except Exception:
                logger.exception(f"Installer failed for {specifier}")
        self._redraw()
        return True

    async def listen(self, reader: asyncio.StreamReader) -> None:
        """Feed lines from reader until it closes. Cancelled on shutdown."""
        while True:
            line_bytes = await read_stream_line(reader)
            if not line_bytes:
                logger.debug("Input stream closed")
                break
            self.handle_line(line_bytes.decode("utf-8", errors="replace"))
