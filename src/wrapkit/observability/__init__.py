"""Observability module: lifecycle events emitted by wrapped clients."""

from wrapkit.observability.events import Event, EventEmitter, EventHandler, EventType

__all__ = [
    "Event",
    "EventEmitter",
    "EventHandler",
    "EventType",
]
