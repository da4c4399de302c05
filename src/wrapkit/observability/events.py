"""
Event system for wrapkit.

Every wrapped client exposes on()/off() for lifecycle events emitted by the
interception pipeline.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable

import structlog

logger = structlog.get_logger()


class EventType(str, Enum):
    """Types of events emitted by a wrapped client."""

    QUEUED = "queued"
    EXECUTING = "executing"
    COMPLETED = "completed"
    RATE_LIMITED = "rate_limited"
    ERROR = "error"


@dataclass
class Event:
    """An event emitted for one intercepted call."""

    event_type: EventType
    method: str
    data: dict[str, Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "event_type": self.event_type.value,
            "method": self.method,
            "timestamp": self.timestamp.isoformat(),
            **self.data,
        }


EventHandler = Callable[[Event], Any]


def _log_handler_failure(handler: EventHandler, event_type: EventType, error: BaseException) -> None:
    logger.warning(
        "Event handler failed",
        handler=getattr(handler, "__name__", repr(handler)),
        event_type=event_type.value,
        error=str(error),
    )


def _log_handler_task(handler: EventHandler, event_type: EventType, task: asyncio.Future) -> None:
    """Done callback surfacing the failure of a coroutine handler."""
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        _log_handler_failure(handler, event_type, error)


class EventEmitter:
    """
    In-process event emitter.

    Handlers are kept in a set per event type. Emission iterates over a
    snapshot, so handlers may unsubscribe while being called. Coroutine
    handlers are scheduled as tasks.
    """

    def __init__(self) -> None:
        self._handlers: dict[EventType, set[EventHandler]] = {}
        self._pending: set[asyncio.Task] = set()

    def on(
        self,
        event_type: EventType | str,
        handler: EventHandler | None = None,
    ) -> Any:
        """
        Register an event handler.

        Can be used as a decorator:
            @client.on("completed")
            def handle_completion(event):
                ...

        Or directly:
            client.on(EventType.COMPLETED, handler_func)
        """
        event_type = EventType(event_type)

        def decorator(fn: EventHandler) -> EventHandler:
            self._handlers.setdefault(event_type, set()).add(fn)
            return fn

        if handler is not None:
            decorator(handler)
            return None

        return decorator

    def off(self, event_type: EventType | str, handler: EventHandler) -> None:
        """Unregister an event handler. Unknown handlers are ignored."""
        self._handlers.get(EventType(event_type), set()).discard(handler)

    def emit(self, event_type: EventType, method: str, **data: Any) -> Event | None:
        """
        Emit an event to the registered handlers.

        Returns:
            The emitted Event, or None when nobody is listening
        """
        handlers = self._handlers.get(event_type)
        if not handlers:
            return None

        event = Event(event_type=event_type, method=method, data=data)
        for handler in list(handlers):
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    task = asyncio.ensure_future(result)
                    self._pending.add(task)
                    task.add_done_callback(self._pending.discard)
                    task.add_done_callback(
                        functools.partial(_log_handler_task, handler, event_type)
                    )
            except Exception as e:
                _log_handler_failure(handler, event_type, e)
        return event
