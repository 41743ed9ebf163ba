"""Backend error taxonomy."""

from __future__ import annotations

from dataclasses import dataclass


class LLMError(Exception):
    """Transient backend failure worth retrying (network, rate limit, 5xx)."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class EmptyResponseError(LLMError):
    """Backend answered but the payload carried no text."""


class BackendUnavailableError(LLMError):
    """No credentials or client; callers must not attempt network calls."""


@dataclass(frozen=True)
class AttemptRecord:
    """Outcome of one model attempt inside a fallback chain."""

    model: str
    attempt: int
    outcome: str
    error: str | None = None


class AllModelsFailedError(LLMError):
    """Every candidate model exhausted its retries."""

    def __init__(self, attempts: list[AttemptRecord]) -> None:
        models = sorted({record.model for record in attempts})
        last = attempts[-1].error if attempts else "no candidates"
        super().__init__(f"All models failed ({', '.join(models) or 'none'}): {last}")
        self.attempts = attempts
