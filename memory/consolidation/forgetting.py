"""Time-window retention policy for the conversation log."""

from __future__ import annotations

import logging

from memory.topic_indexer import TopicIndexer
from memory.types.event import Category, Event

logger = logging.getLogger("dv.memory.forgetting")


def is_baseline(event: Event) -> bool:
    """Skill baseline events survive every retention pass."""
    return event.category == Category.SYSTEM and event.action == "skill_init"


class ForgettingPolicy:
    """Evicts events and topic occurrences that fall outside the retention window."""

    def __init__(self, max_duration_minutes: int) -> None:
        self.max_duration_minutes = max_duration_minutes

    def cutoff(self, now_ms: int) -> int:
        return now_ms - self.max_duration_minutes * 60_000

    def run(
        self,
        events: list[Event],
        topics: TopicIndexer,
        now_ms: int,
    ) -> tuple[list[Event], dict[str, int]]:
        """Return surviving events and eviction counts."""
        cutoff = self.cutoff(now_ms)
        kept = [event for event in events if is_baseline(event) or event.timestamp >= cutoff]
        evicted = len(events) - len(kept)
        pruned = topics.prune(cutoff)
        if evicted:
            logger.debug("Evicted expired events: evicted=%d remaining=%d", evicted, len(kept))
        return kept, {"evicted_events": evicted, "pruned_occurrences": pruned}
