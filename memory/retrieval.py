"""Topic recall over the topic index and raw event log."""

from __future__ import annotations

from collections.abc import Iterable

from memory.topic_indexer import TopicIndexer
from memory.types.event import Event
from memory.types.topic import RecallHit


def format_time_ago(timestamp: int, now_ms: int) -> str:
    """Human-readable age of a timestamp."""
    minutes = round((now_ms - timestamp) / 60_000)
    if minutes < 1:
        return "just now"
    if minutes == 1:
        return "1 minute ago"
    return f"{minutes} minutes ago"


class MemoryRetriever:
    """Answers "what did we say about X?" from topics and event contents."""

    def __init__(self, limit: int = 10) -> None:
        self.limit = limit

    def retrieve(
        self,
        query: str,
        topics: TopicIndexer,
        events: Iterable[Event],
        now_ms: int,
    ) -> list[RecallHit]:
        """Return the newest hits from topic keys and direct content matches."""
        needle = (query or "").lower()
        if not needle:
            return []
        hits: list[RecallHit] = []

        for topic, occurrences in topics.entries():
            if topic in needle or needle in topic:
                hits.extend(
                    RecallHit(
                        topic=topic,
                        content=entry.content_snippet,
                        timestamp=entry.timestamp,
                        ago=format_time_ago(entry.timestamp, now_ms),
                    )
                    for entry in occurrences
                )

        for event in events:
            if event.content and needle in event.content.lower():
                hits.append(
                    RecallHit(
                        topic="direct_match",
                        content=event.content,
                        timestamp=event.timestamp,
                        ago=format_time_ago(event.timestamp, now_ms),
                        role=event.role.value,
                    )
                )

        hits.sort(key=lambda hit: hit.timestamp, reverse=True)
        return hits[: self.limit]
