"""Simple in-process event bus for observability hooks."""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from collections.abc import Callable
from typing import Any

EventHandler = Callable[[dict[str, Any]], None]

logger = logging.getLogger("dv.events")

# Event names emitted by the core.
LLM_ATTEMPT = "llm.attempt"
MEMORY_UPDATED = "memory.updated"
SESSION_STARTED = "session.started"
SESSION_ENDED = "session.ended"
RESPONSE_READY = "response.ready"


class EventBus:
    """Dispatches events to subscribers by event name.

    A failing subscriber is logged and skipped so observers can never break
    the memory or model pipeline they are watching.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, event_name: str, handler: EventHandler) -> None:
        """Register a callback for an event."""
        with self._lock:
            self._handlers[event_name].append(handler)

    def has_subscribers(self, event_name: str) -> bool:
        return bool(self._handlers.get(event_name))

    def emit(self, event_name: str, payload: dict[str, Any]) -> None:
        """Emit an event to all subscribers."""
        with self._lock:
            handlers = list(self._handlers.get(event_name, []))
        for handler in handlers:
            try:
                handler(payload)
            except Exception:
                logger.exception("Event handler failed for %s", event_name)
