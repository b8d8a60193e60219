from . import events, notifier
from .ws import ws_router

register_event_handlers = events.register_event_handlers
