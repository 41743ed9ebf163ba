"""Deterministic local provider for offline usage and tests."""

from __future__ import annotations

import re
from collections import Counter, deque
from collections.abc import Iterable
from typing import Any

from llm.base_llm import BaseLLM, Message


class MockProvider(BaseLLM):
    """Rule-based local responder when external backends are unavailable.

    Optionally replays a script: each entry is returned in order, and
    exception instances are raised instead of returned. Every call is
    recorded in ``calls`` as ``(model, messages, kwargs)``.
    """

    name = "mock"

    def __init__(self, script: Iterable[str | Exception] | None = None, model: str = "mock-model") -> None:
        self.model = model
        self.script: deque[str | Exception] = deque(script or [])
        self.calls: list[tuple[str, list[Message], dict[str, Any]]] = []

    @staticmethod
    def _tokenize(text: str) -> list[str]:
        return [token for token in re.split(r"[^a-zA-Z0-9]+", text.lower()) if len(token) > 3]

    @staticmethod
    def _summarize_tokens(tokens: list[str], max_items: int = 6) -> str:
        if not tokens:
            return "no salient terms detected"
        top = Counter(tokens).most_common(max_items)
        return ", ".join(term for term, _ in top)

    @staticmethod
    def _text_of(content: Any) -> str:
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            return " ".join(part.get("text", "") for part in content if isinstance(part, dict))
        return ""

    @staticmethod
    def _has_image(messages: list[Message]) -> bool:
        for message in messages:
            content = message.get("content")
            if isinstance(content, list) and any(
                isinstance(part, dict) and part.get("type") == "image_url" for part in content
            ):
                return True
        return False

    def chat(self, messages: list[Message], model: str | None = None, **kwargs: Any) -> str:
        """Generate deterministic text from conversational messages."""
        used_model = model or self.model
        self.calls.append((used_model, messages, dict(kwargs)))
        if self.script:
            item = self.script.popleft()
            if isinstance(item, Exception):
                raise item
            return item
        if not messages:
            return "No input received."

        if self._has_image(messages):
            return "Extracted screen text: design a URL shortener that handles 10000 QPS."

        system_text = " ".join(self._text_of(m.get("content")) for m in messages if m.get("role") == "system")
        user_messages = [self._text_of(m.get("content")) for m in messages if m.get("role") == "user"]
        prompt = user_messages[-1] if user_messages else self._text_of(messages[-1].get("content"))
        salient = self._summarize_tokens(self._tokenize(prompt))

        if "Part A" in system_text:
            return (
                "## Part A — What to Say\n"
                f"- Restate the problem around: {salient}.\n"
                "## Part B — Solution\n"
                f"Local fallback solution outline covering {salient}."
            )
        return f"Local fallback response. Salient terms: {salient}."
