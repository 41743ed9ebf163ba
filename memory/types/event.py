"""Conversation event models."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator


class Role(str, Enum):
    """Speaker of an event."""

    USER = "user"
    MODEL = "model"
    SYSTEM = "system"


class Category(str, Enum):
    """Bucket used for filtering and retention policy."""

    INTERACTION = "interaction"
    AI = "ai"
    CAPTURE = "capture"
    SYSTEM = "system"
    GENERAL = "general"


ACTION_CATEGORIES: dict[str, Category] = {
    "voice_input": Category.INTERACTION,
    "chat_input": Category.INTERACTION,
    "llm_input": Category.INTERACTION,
    "model_response": Category.AI,
    "copilot_whisper": Category.AI,
    "ocr_capture": Category.CAPTURE,
    "screenshot": Category.CAPTURE,
    "skill_init": Category.SYSTEM,
    "skill_change": Category.SYSTEM,
    "session_start": Category.SYSTEM,
    "session_end": Category.SYSTEM,
}

ROLE_ACTIONS: dict[Role, str] = {
    Role.USER: "user_message",
    Role.MODEL: "model_response",
    Role.SYSTEM: "system_event",
}


def categorize_action(action: str | None) -> Category:
    """Map an action tag to its category."""
    if not action:
        return Category.GENERAL
    return ACTION_CATEGORIES.get(action, Category.GENERAL)


def infer_action(role: Role) -> str:
    """Default action tag for events recorded without one."""
    return ROLE_ACTIONS.get(role, "unknown")


class EventMetadata(BaseModel):
    """Known optional metadata fields plus an open extension map."""

    skill: str | None = None
    session_elapsed: int | None = None
    source: str | None = None
    text_length: int | None = None
    response_length: int | None = None
    full_text_length: int | None = None
    processing_time: int | None = None
    used_fallback: bool | None = None
    detected_type: str | None = None
    model_used: str | None = None
    consolidated: bool = False
    occurrences: int | None = None
    extra: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_kwargs(cls, **values: Any) -> EventMetadata:
        """Split arbitrary keyword metadata into known fields and ``extra``."""
        known = {key: value for key, value in values.items() if key in cls.model_fields and key != "extra"}
        extra = {key: value for key, value in values.items() if key not in cls.model_fields}
        extra.update(values.get("extra") or {})
        return cls(**known, extra=extra)


class Event(BaseModel):
    """One timestamped record of user, model, or system activity."""

    id: str
    timestamp: int
    role: Role
    content: str = ""
    action: str
    category: Category
    metadata: EventMetadata = Field(default_factory=EventMetadata)

    @field_validator("content", mode="before")
    @classmethod
    def _coerce_content(cls, value: Any) -> str:
        # Non-text payloads degrade to empty content instead of failing the write.
        if isinstance(value, str):
            return value
        return ""

    def transcript_entry(self) -> dict[str, Any]:
        """Compact role/content/timestamp view used in summaries."""
        return {"role": self.role.value, "content": self.content, "timestamp": self.timestamp}
