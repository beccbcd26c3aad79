# Export key classes
from .components.tui.dashboard import Dashboard, paint
from .components.tui.event_bus import EventBus

__all__ = ["Dashboard", "EventBus", "paint"]
