"""Multi-model fallback chain with per-model retry and backoff.

Each request walks a small state machine:
``pending(model_i, attempt_j) -> success | retry | next model | all exhausted``.
Retries never carry across models; backoff between tries of the same model is
``attempt * base_delay`` seconds.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from typing import Any

from pydantic import BaseModel, Field

from core.event_bus import LLM_ATTEMPT
from llm.base_llm import BaseLLM, Message
from llm.errors import (
    AllModelsFailedError,
    AttemptRecord,
    BackendUnavailableError,
    EmptyResponseError,
    LLMError,
)

logger = logging.getLogger("dv.llm.executor")


class GenerationConfig(BaseModel):
    """Sampling parameters forwarded to the backend."""

    temperature: float = 0.7
    top_p: float = 0.9
    max_tokens: int = 4096

    def with_overrides(self, **overrides: Any) -> GenerationConfig:
        return self.model_copy(update={k: v for k, v in overrides.items() if v is not None})


class ModelRequest(BaseModel):
    """What to send; the executor decides where."""

    messages: list[Message]
    generation: GenerationConfig = Field(default_factory=GenerationConfig)


class ExecutionResult(BaseModel):
    """First successful payload and which tier produced it."""

    text: str
    model_used: str
    attempts: list[AttemptRecord] = Field(default_factory=list)

    def attempts_for(self, model: str) -> int:
        return sum(1 for record in self.attempts if record.model == model)


class ModelFallbackExecutor:
    """Tries candidate models in order until one returns a non-empty payload."""

    def __init__(
        self,
        llm: BaseLLM,
        max_retries: int = 3,
        base_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        event_bus: Any | None = None,
    ) -> None:
        self.llm = llm
        self.max_retries = max(1, max_retries)
        self.base_delay = base_delay
        self.sleep = sleep
        self.event_bus = event_bus

    def execute(
        self,
        request: ModelRequest,
        candidates: Sequence[str],
        max_retries: int | None = None,
    ) -> ExecutionResult:
        """Return the first non-empty reply or raise ``AllModelsFailedError``."""
        retries = max(1, max_retries if max_retries is not None else self.max_retries)
        params = request.generation.model_dump()
        attempts: list[AttemptRecord] = []

        for model in candidates:
            for attempt in range(1, retries + 1):
                try:
                    text = self.llm.chat(request.messages, model=model, **params)
                    if not text or not text.strip():
                        raise EmptyResponseError(f"Empty response from {model}")
                except BackendUnavailableError:
                    raise
                except LLMError as exc:
                    record = AttemptRecord(model=model, attempt=attempt, outcome="failure", error=str(exc))
                    attempts.append(record)
                    self._observe(record)
                    logger.warning(
                        "Model %s attempt %d/%d failed: %s",
                        model,
                        attempt,
                        retries,
                        exc,
                    )
                    if attempt < retries:
                        self.sleep(attempt * self.base_delay)
                    continue

                record = AttemptRecord(model=model, attempt=attempt, outcome="success")
                attempts.append(record)
                self._observe(record)
                logger.info("Model %s succeeded on attempt %d", model, attempt)
                return ExecutionResult(text=text, model_used=model, attempts=attempts)

            logger.warning("Model %s exhausted %d attempts; moving to next candidate", model, retries)

        logger.error("All %d candidate models failed", len(candidates))
        raise AllModelsFailedError(attempts)

    def _observe(self, record: AttemptRecord) -> None:
        if self.event_bus is not None:
            self.event_bus.emit(
                LLM_ATTEMPT,
                {
                    "model": record.model,
                    "attempt": record.attempt,
                    "outcome": record.outcome,
                    "error": record.error,
                },
            )
