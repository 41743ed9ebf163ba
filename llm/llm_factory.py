"""LLM provider factory."""

from __future__ import annotations

import logging
from typing import Any

from llm.base_llm import BaseLLM
from llm.providers.groq_provider import GroqProvider
from llm.providers.mock_provider import MockProvider
from llm.providers.openai_provider import OpenAIProvider

logger = logging.getLogger("dv.llm")


def build_llm(config: dict[str, Any]) -> BaseLLM | None:
    """Build the configured backend, or None when it cannot be used.

    ``None`` means total backend unavailability: the pipeline answers with
    canned fallbacks and never attempts a network call.
    """
    llm_cfg = config.get("llm", {})
    provider_type = llm_cfg.get("provider", "groq")
    provider_cfg = llm_cfg.get(provider_type, {})
    timeout = float(provider_cfg.get("timeout", 30.0))

    provider: BaseLLM
    if provider_type == "groq":
        provider = GroqProvider(model=provider_cfg.get("model", "llama-3.3-70b-versatile"), timeout=timeout)
    elif provider_type == "openai":
        provider = OpenAIProvider(model=provider_cfg.get("model", "gpt-4o-mini"), timeout=timeout)
    elif provider_type == "mock":
        provider = MockProvider(model=provider_cfg.get("model", "mock-model"))
    else:
        logger.error("Unknown LLM provider %r; running without a backend", provider_type)
        return None

    if not provider.is_available():
        logger.warning(
            "%s provider unavailable (missing credentials); canned fallbacks will be used",
            provider.name,
        )
        return None
    logger.info("LLM client initialized provider=%s model=%s", provider.name, provider.model)
    return provider
