"""Follow-up (question, answer) pairing over the conversation log."""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from memory.types.event import Event, Role

OCR_PREFIX = "Screenshot captured: "
QUESTION_LIMIT = 1500
ANSWER_LIMIT = 2000
CONTEXT_HEADER = "=== PREVIOUS CONVERSATION CONTEXT ==="
CONTEXT_FOOTER = "=== END PREVIOUS CONTEXT ==="

_OCR_PREFIX_RE = re.compile(r"^Screenshot captured:\s*", re.IGNORECASE)


@dataclass(frozen=True)
class FollowUpPair:
    """A reconstructed question with the model answer that followed it."""

    question: str
    answer: str
    source: str  # "screen" or "voice/chat"


def strip_ocr_prefix(content: str, replacement: str = "") -> str:
    return _OCR_PREFIX_RE.sub(replacement, content, count=1)


def build_pairs(events: Iterable[Event]) -> list[FollowUpPair]:
    """Pair each answer with the most recent unanswered question.

    A newer question replaces an unanswered one; unanswered questions are
    dropped rather than queued.
    """
    pairs: list[FollowUpPair] = []
    question: str | None = None
    source: str | None = None
    for event in events:
        if event.action == "ocr_capture":
            question = strip_ocr_prefix(event.content)
            source = "screen"
        elif event.role == Role.USER:
            question = event.content
            source = "voice/chat"
        elif event.role == Role.MODEL and question:
            pairs.append(FollowUpPair(question=question, answer=event.content, source=source or "voice/chat"))
            question = None
            source = None
    return pairs


def render_follow_up_context(pairs: list[FollowUpPair], max_pairs: int = 3) -> str:
    """Render the last ``max_pairs`` pairs as a bounded transcript."""
    if not pairs or max_pairs <= 0:
        return ""
    lines = [CONTEXT_HEADER]
    for idx, pair in enumerate(pairs[-max_pairs:], start=1):
        label = "SCREEN CONTENT" if pair.source == "screen" else "USER MESSAGE"
        lines.append("")
        lines.append(f"--- Turn {idx} ---")
        lines.append(f"{label}:")
        lines.append(pair.question[:QUESTION_LIMIT])
        lines.append("")
        lines.append("YOUR PREVIOUS ANSWER:")
        lines.append(pair.answer[:ANSWER_LIMIT])
    lines.append("")
    lines.append(CONTEXT_FOOTER)
    return "\n".join(lines) + "\n"
