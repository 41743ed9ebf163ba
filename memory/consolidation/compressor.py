"""Hard size cap for the conversation log."""

from __future__ import annotations

import logging

from memory.types.event import Event

logger = logging.getLogger("dv.memory.compressor")


class Compressor:
    """Truncates the log from the front so the newest events always survive."""

    def __init__(self, max_size: int) -> None:
        self.max_size = max_size

    def compress(self, events: list[Event]) -> list[Event]:
        excess = len(events) - self.max_size
        if excess <= 0:
            return events
        logger.debug("Memory truncated: removed=%d remaining=%d", excess, self.max_size)
        return events[excess:]
