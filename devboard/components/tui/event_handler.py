from __future__ import annotations

import logging
from collections.abc import Callable
from functools import partial
from typing import TYPE_CHECKING, Any

from .events import (
    EVENT_KINDS,
    ConsoleMessage,
    DashboardEvent,
    MalformedEventError,
    MissingDependency,
    SessionStarted,
    WorkerCompleted,
    WorkerOutput,
    WorkerReset,
    WorkerStatusUpdate,
    decode_event,
    format_console_args,
)
from .state import ABSENT, StateStore

if TYPE_CHECKING:
    from .event_bus import EventBus

logger = logging.getLogger(__name__)


class EventReducer:
    """Applies bus events to the state store, one mutation and one redraw each.

    Malformed events and events naming unregistered workers are logged and
    dropped. The redraw still happens so every delivered event produces
    exactly one frame.
    """

    def __init__(self, store: StateStore, redraw: Callable[[], Any]) -> None:
        self._store = store
        self._redraw = redraw

    def subscribe(self, bus: EventBus) -> None:
        for kind in EVENT_KINDS:
            bus.on(kind, partial(self.dispatch, kind))

    def dispatch(self, kind: str, payload: Any = None) -> None:
        logger.debug(f"HANDLING EVENT: {kind} - {payload}")
        try:
            event = decode_event(kind, payload)
        except MalformedEventError as e:
            logger.warning(f"Ignoring malformed {kind} event: {e}")
        else:
            self.apply(event)
        self._redraw()

    def _known_worker(self, worker_id: str, kind: str) -> bool:
        if self._store.has_worker(worker_id):
            return True
        logger.warning(f"Ignoring {kind} for unregistered worker '{worker_id}'")
        return False

    def apply(self, event: DashboardEvent) -> None:
        """Mutate the store for a single decoded event."""
        store = self._store
        snapshot = store.get_snapshot()

        if isinstance(event, WorkerOutput):
            if self._known_worker(event.id, "output"):
                store.append_output(event.id, event.msg)
        elif isinstance(event, WorkerStatusUpdate):
            if event.state is None:
                logger.debug(f"Status update for '{event.id}' carried no state")
            elif self._known_worker(event.id, "status update"):
                store.set_state(event.id, event.state)
        elif isinstance(event, WorkerCompleted):
            if self._known_worker(event.id, "completion"):
                record = snapshot.workers[event.id]
                store.set_state(event.id, ABSENT)
                store.set_done(event.id)
                # First error wins: a later clean completion never clears it.
                if not record.error:
                    store.set_error(event.id, event.error)
                logger.info(f"Worker '{event.id}' completed (error={record.error!r})")
        elif isinstance(event, WorkerReset):
            if self._known_worker(event.id, "reset"):
                store.reset_worker(event.id)
                logger.info(f"Worker '{event.id}' reset")
        elif isinstance(event, ConsoleMessage):
            store.append_console(f"[{event.level}] {format_console_args(event.args)}\n")
        elif isinstance(event, SessionStarted):
            if not snapshot.missing_module and snapshot.console_buffer:
                store.clear_console()
            store.clear_missing_module()
            logger.info("New session started")
        elif isinstance(event, MissingDependency):
            store.set_missing_module(event.specifier, event.is_installed)
            logger.info(
                f"Missing dependency '{event.specifier}' (installed locally: {event.is_installed})"
            )
