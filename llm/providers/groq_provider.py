"""Groq LLM provider (OpenAI-compatible API)."""

from __future__ import annotations

from typing import Any

from llm.providers.openai_provider import OpenAIProvider


class GroqProvider(OpenAIProvider):
    """Groq inference adapter. Uses the OpenAI-compatible endpoint for text and vision."""

    name = "groq"
    BASE_URL = "https://api.groq.com/openai/v1"
    API_KEY_ENV = "GROQ_API_KEY"

    def __init__(self, model: str = "llama-3.3-70b-versatile", **kwargs: Any) -> None:
        super().__init__(model=model, **kwargs)
