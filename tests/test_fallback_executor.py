"""Model fallback chain tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from llm.errors import AllModelsFailedError, BackendUnavailableError, LLMError
from llm.fallback_executor import GenerationConfig, ModelFallbackExecutor, ModelRequest
from llm.providers.mock_provider import MockProvider

REQUEST = ModelRequest(messages=[{"role": "user", "content": "hi"}])


def test_falls_through_to_next_model_after_retries(sleeps) -> None:
    llm = MockProvider(script=[LLMError("rate limited", status=429), "   ", "hello"])
    bus = MagicMock()
    executor = ModelFallbackExecutor(llm, max_retries=2, base_delay=1.5, sleep=sleeps.append, event_bus=bus)

    result = executor.execute(REQUEST, ["primary", "backup"])

    assert result.text == "hello"
    assert result.model_used == "backup"
    assert result.attempts_for("primary") == 2
    assert [record.outcome for record in result.attempts] == ["failure", "failure", "success"]
    assert sleeps == [1.5]
    assert [call.args[0] for call in bus.emit.call_args_list] == ["llm.attempt"] * 3
    assert bus.emit.call_args_list[1].args[1]["error"] == "Empty response from primary"
    assert [model for model, _, _ in llm.calls] == ["primary", "primary", "backup"]


def test_second_model_recovers_on_its_second_attempt(sleeps) -> None:
    llm = MockProvider(script=[LLMError("a1"), LLMError("a2"), LLMError("a3"), LLMError("b1"), "ok"])
    executor = ModelFallbackExecutor(llm, max_retries=3, base_delay=1.0, sleep=sleeps.append)

    result = executor.execute(REQUEST, ["first", "second"])

    assert result.text == "ok"
    assert result.model_used == "second"
    assert result.attempts_for("first") == 3
    assert result.attempts_for("second") == 2
    assert sleeps == [1.0, 2.0, 1.0]


def test_backoff_grows_linearly_per_model(sleeps) -> None:
    llm = MockProvider(script=[LLMError("down")] * 6)
    executor = ModelFallbackExecutor(llm, max_retries=3, base_delay=1.0, sleep=sleeps.append)

    with pytest.raises(AllModelsFailedError) as excinfo:
        executor.execute(REQUEST, ["a", "b"])

    assert sleeps == [1.0, 2.0, 1.0, 2.0]
    assert len(excinfo.value.attempts) == 6
    assert {record.model for record in excinfo.value.attempts} == {"a", "b"}


def test_call_level_retry_override(sleeps) -> None:
    llm = MockProvider(script=[LLMError("x"), LLMError("y"), "vision text"])
    executor = ModelFallbackExecutor(llm, max_retries=3, sleep=sleeps.append)

    result = executor.execute(REQUEST, ["v1", "v2", "v3"], max_retries=1)

    assert result.model_used == "v3"
    assert sleeps == []


def test_backend_unavailable_is_not_retried(sleeps) -> None:
    llm = MockProvider(script=[BackendUnavailableError("no key")])
    executor = ModelFallbackExecutor(llm, sleep=sleeps.append)

    with pytest.raises(BackendUnavailableError):
        executor.execute(REQUEST, ["a", "b"])

    assert len(llm.calls) == 1


def test_generation_parameters_are_forwarded(sleeps) -> None:
    llm = MockProvider(script=["ok"])
    executor = ModelFallbackExecutor(llm, sleep=sleeps.append)
    request = ModelRequest(
        messages=[{"role": "user", "content": "hi"}],
        generation=GenerationConfig().with_overrides(max_tokens=100, temperature=0.3, top_p=None),
    )

    executor.execute(request, ["m"])

    assert llm.calls[0][2] == {"temperature": 0.3, "top_p": 0.9, "max_tokens": 100}
