"""Session lifecycle models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from memory.types.event import Event


def format_duration(total_seconds: int) -> str:
    """Render seconds as ``MM:SS`` or ``HH:MM:SS`` once past an hour."""
    hours, rest = divmod(max(0, int(total_seconds)), 3600)
    minutes, seconds = divmod(rest, 60)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    return f"{minutes:02d}:{seconds:02d}"


class SessionTimer(BaseModel):
    """Elapsed/remaining view of the active session window."""

    elapsed_seconds: int = 0
    remaining_seconds: int = 0
    formatted: str = "00:00"
    remaining_formatted: str = "00:00"
    percent_complete: int = 0
    is_active: bool = False

    @classmethod
    def compute(
        cls,
        start_ms: int | None,
        now_ms: int,
        max_duration_minutes: int,
        active: bool,
    ) -> SessionTimer:
        total_seconds = max_duration_minutes * 60
        if start_ms is None:
            return cls(
                remaining_seconds=total_seconds,
                remaining_formatted=format_duration(total_seconds),
                is_active=False,
            )
        elapsed = max(0, (now_ms - start_ms) // 1000)
        remaining = max(0, total_seconds - elapsed)
        percent = min(100, round(elapsed / total_seconds * 100)) if total_seconds else 100
        return cls(
            elapsed_seconds=elapsed,
            remaining_seconds=remaining,
            formatted=format_duration(elapsed),
            remaining_formatted=format_duration(remaining),
            percent_complete=percent,
            is_active=active,
        )


class SessionSummary(BaseModel):
    """Digest produced when a session ends."""

    duration: str
    duration_minutes: int
    mode: str
    total_events: int
    user_messages: int
    ai_responses: int
    topics_covered: list[str] = Field(default_factory=list)
    topic_count: int = 0
    transcript: list[dict[str, Any]] = Field(default_factory=list)


class HistorySnapshot(BaseModel):
    """Status view of memory used by callers and status displays."""

    recent: list[Event] = Field(default_factory=list)
    important: list[Event] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    timer: SessionTimer = Field(default_factory=SessionTimer)
    event_count: int = 0
