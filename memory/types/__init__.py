"""Typed memory payload models."""

from memory.types.event import (
    Category,
    Event,
    EventMetadata,
    Role,
    categorize_action,
    infer_action,
)
from memory.types.session import HistorySnapshot, SessionSummary, SessionTimer, format_duration
from memory.types.topic import RecallHit, TopicOccurrence

__all__ = [
    "Category",
    "Event",
    "EventMetadata",
    "HistorySnapshot",
    "RecallHit",
    "Role",
    "SessionSummary",
    "SessionTimer",
    "TopicOccurrence",
    "categorize_action",
    "format_duration",
    "infer_action",
]
