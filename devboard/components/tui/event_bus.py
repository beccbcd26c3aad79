from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

Handler = Callable[[dict[str, Any]], None]


class EventBus:
    """In-process publish/subscribe keyed by event kind.

    Delivery is synchronous: ``emit`` returns only after every handler has
    run, so events published from a single event loop are handled strictly
    in publish order. A failing handler is logged and skipped; ``SystemExit``
    raised by a handler propagates to the publisher.
    """

    def __init__(self, name: str = "devboard") -> None:
        self.name = name
        self._handlers: dict[str, list[Handler]] = defaultdict(list)
        self._next_id = 0

    def on(self, kind: str, handler: Handler) -> None:
        self._handlers[kind].append(handler)

    def emit(self, kind: str, payload: dict[str, Any] | None = None) -> int:
        """Deliver one event to every handler of its kind. Returns the event id."""
        ev_id = self._next_id
        self._next_id += 1
        handlers = list(self._handlers.get(kind, ()))
        if not handlers:
            logger.debug(f"[{self.name}] event #{ev_id} {kind} has no subscribers")
        for handler in handlers:
            try:
                handler(payload if payload is not None else {})
            except Exception:
                logger.exception(f"[{self.name}] handler for {kind} failed on event #{ev_id}")
        return ev_id
