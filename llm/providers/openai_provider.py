"""OpenAI-compatible chat completion provider."""

from __future__ import annotations

import logging
import os
from typing import Any

from openai import APIStatusError, OpenAI, OpenAIError

from llm.base_llm import BaseLLM, Message
from llm.errors import BackendUnavailableError, LLMError

logger = logging.getLogger("dv.llm.openai")

_GENERATION_KEYS = ("temperature", "top_p", "max_tokens")


class OpenAIProvider(BaseLLM):
    """OpenAI API adapter. Usable only when an API key is configured."""

    name = "openai"
    BASE_URL: str | None = None
    API_KEY_ENV = "OPENAI_API_KEY"

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        api_key: str | None = None,
        timeout: float = 30.0,
        client: Any | None = None,
    ) -> None:
        self.model = model
        self.timeout = timeout
        self._api_key = api_key
        self._client = client

    @property
    def api_key(self) -> str | None:
        return self._api_key or os.getenv(self.API_KEY_ENV)

    def is_available(self) -> bool:
        return self._client is not None or bool(self.api_key)

    def _get_client(self) -> Any:
        if self._client is None:
            if not self.api_key:
                raise BackendUnavailableError(f"{self.API_KEY_ENV} not set")
            # Retries are owned by the fallback executor, not the SDK.
            self._client = OpenAI(
                api_key=self.api_key,
                base_url=self.BASE_URL,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    def chat(self, messages: list[Message], model: str | None = None, **kwargs: Any) -> str:
        client = self._get_client()
        params = {key: kwargs[key] for key in _GENERATION_KEYS if kwargs.get(key) is not None}
        try:
            response = client.chat.completions.create(
                model=model or self.model,
                messages=messages,
                **params,
            )
        except APIStatusError as exc:
            raise LLMError(f"{self.name} request failed: {exc}", status=exc.status_code) from exc
        except OpenAIError as exc:
            raise LLMError(f"{self.name} request failed: {exc}") from exc
        if not response.choices:
            return ""
        return response.choices[0].message.content or ""
