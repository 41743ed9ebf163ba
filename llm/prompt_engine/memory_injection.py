"""Memory injection helpers for prompt composition."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from memory.followup import strip_ocr_prefix
from memory.types.event import Event, Role

CONTEXT_LIMIT = 20
SCREEN_CONTENT_LABEL = "[Screen Content]: "


def format_session_memory(events: Iterable[Event], limit: int = CONTEXT_LIMIT) -> list[dict[str, str]]:
    """Map memory events onto chat roles, newest ``limit`` only.

    Screen captures and user input become ``user`` turns, model replies become
    ``assistant`` turns, and everything else rides along as ``system``.
    """
    usable = [event for event in events if event.content]
    messages: list[dict[str, str]] = []
    for event in usable[-limit:] if limit > 0 else []:
        if event.role == Role.MODEL:
            role = "assistant"
        elif event.role == Role.USER or event.action == "ocr_capture":
            role = "user"
        else:
            role = "system"
        content = event.content
        if event.action == "ocr_capture":
            content = strip_ocr_prefix(content, SCREEN_CONTENT_LABEL)
        messages.append({"role": role, "content": content})
    return messages


def build_messages(
    system_prompt: str,
    user_content: str | list[dict[str, Any]],
    events: Iterable[Event] = (),
) -> list[dict[str, Any]]:
    """System prompt, then memory context, then the final user turn."""
    return [
        {"role": "system", "content": system_prompt},
        *format_session_memory(events),
        {"role": "user", "content": user_content},
    ]


def with_follow_up(text: str, follow_up_context: str, label: str = "NEW MESSAGE") -> str:
    """Prefix the user text with the rendered follow-up transcript, if any."""
    if not follow_up_context:
        return text
    return f"{follow_up_context}\n\n{label} (respond to this, building on context above):\n{text}"
