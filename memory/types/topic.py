"""Topic index models."""

from __future__ import annotations

from pydantic import BaseModel


class TopicOccurrence(BaseModel):
    """A single sighting of a topic inside an event's content."""

    content_snippet: str
    timestamp: int
    relevance: float = 1.0


class RecallHit(BaseModel):
    """Result row returned by topic recall."""

    topic: str
    content: str
    timestamp: int
    ago: str
    role: str | None = None
