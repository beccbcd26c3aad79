from __future__ import annotations

import logging
import sys
from collections.abc import Callable, Iterable
from typing import Any

from rich.console import Console

from devboard.models import WorkerConfig

from .event_bus import EventBus
from .event_handler import EventReducer
from .prompt_handler import PromptHandler
from .renderer import Frame, render, write_frame
from .session import SessionInfo
from .state import StateStore

logger = logging.getLogger(__name__)


class Dashboard:
    """One dashboard session: store, reducer, renderer and prompt handler.

    All state lives on this object. Every repaint clears the terminal and
    writes the complete frame in a single buffered write.
    """

    def __init__(
        self,
        workers: Iterable[WorkerConfig | dict[str, Any]],
        session: SessionInfo | None = None,
        console: Console | None = None,
        exit_hook: Callable[[int], Any] = sys.exit,
    ) -> None:
        self.session = session or SessionInfo()
        self.console = console or Console()
        self._exit_hook = exit_hook
        self.store = StateStore()
        self.store.init_workers(
            worker if isinstance(worker, WorkerConfig) else WorkerConfig.model_validate(worker)
            for worker in workers
        )
        self.reducer = EventReducer(self.store, self.repaint)
        self.prompt_handler: PromptHandler | None = None
        if self.session.serve is not None:
            self.prompt_handler = PromptHandler(self.store, self.session.serve, self.repaint)
        self.last_frame: Frame | None = None
        self.frames_painted = 0

    def start(self, bus: EventBus) -> Frame:
        """Subscribe to bus and paint the initial frame."""
        self.reducer.subscribe(bus)
        logger.info(
            f"Dashboard started with {len(self.store.get_snapshot().workers)} workers "
            f"(serve={self.session.serve is not None}, build={self.session.build is not None})"
        )
        return self.repaint()

    def repaint(self) -> Frame:
        frame = render(self.store.get_snapshot(), self.session)
        with self.console:
            write_frame(self.console, frame)
        self.last_frame = frame
        self.frames_painted += 1

        if frame.exit_code is not None:
            logger.error(f"Finished with errors, exiting with status {frame.exit_code}")
            self._exit_hook(frame.exit_code)
        return frame


def paint(
    bus: EventBus,
    workers: Iterable[WorkerConfig | dict[str, Any]],
    session: SessionInfo | None = None,
    console: Console | None = None,
    exit_hook: Callable[[int], Any] = sys.exit,
) -> Dashboard:
    """Create a dashboard for workers, attach it to bus and paint once."""
    dashboard = Dashboard(workers, session=session, console=console, exit_hook=exit_hook)
    dashboard.start(bus)
    return dashboard
