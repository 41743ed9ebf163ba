"""Base LLM interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

Message = dict[str, Any]


class BaseLLM(ABC):
    """Abstract chat-completion backend.

    ``chat`` returns the raw reply text (possibly empty) or raises
    ``llm.errors.LLMError`` on transport/API failure.
    """

    name = "base"
    model = ""

    def is_available(self) -> bool:
        """Return True when the backend can be called without a network probe."""
        return True

    @abstractmethod
    def chat(self, messages: list[Message], model: str | None = None, **kwargs: Any) -> str:
        """Return assistant response text for a message list."""
