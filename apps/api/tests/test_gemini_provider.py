from __future__ import annotations

from functools import partial
from types import SimpleNamespace
from typing import Any

import anyio
import httpx
import pytest
from google.genai import errors as genai_errors

from parent_helper.services.ai.errors import (
    EmptyResponse,
    MissingCredential,
    ProviderRequestFailed,
    ProviderUnavailable,
)
from parent_helper.services.providers.gemini import GeminiProvider, extract_response_text


class _FakeModels:
    def __init__(self, outcome: Any) -> None:
        self.outcome = outcome
        self.calls: list[dict[str, Any]] = []

    async def generate_content(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def _provider(outcome: Any, *, api_key: str | None = "test-key") -> tuple[GeminiProvider, _FakeModels]:
    models = _FakeModels(outcome)
    client = SimpleNamespace(aio=SimpleNamespace(models=models))
    return GeminiProvider(api_key=api_key, model="gemini-test", client=client), models


def _complete(provider: GeminiProvider) -> str:
    return anyio.run(partial(provider.complete, "prompt", max_output_tokens=600, temperature=0.7))


def _api_error(error_cls: type[genai_errors.APIError], code: int, status: str) -> genai_errors.APIError:
    return error_cls(code, {"error": {"code": code, "message": "boom", "status": status}})


def test_complete_returns_direct_text_and_passes_config() -> None:
    provider, models = _provider(SimpleNamespace(text='{"answer": "hi"}'))
    assert _complete(provider) == '{"answer": "hi"}'
    call = models.calls[0]
    assert call["model"] == "gemini-test"
    assert call["contents"] == "prompt"
    assert call["config"].response_mime_type == "application/json"
    assert call["config"].temperature == 0.7
    assert call["config"].max_output_tokens == 600


def test_missing_api_key_fails_at_call_time() -> None:
    provider, models = _provider(SimpleNamespace(text="{}"), api_key=None)
    with pytest.raises(MissingCredential):
        _complete(provider)
    assert models.calls == []


def test_503_maps_to_provider_unavailable() -> None:
    provider, _ = _provider(_api_error(genai_errors.ServerError, 503, "UNAVAILABLE"))
    with pytest.raises(ProviderUnavailable) as excinfo:
        _complete(provider)
    assert excinfo.value.status_code == 503


@pytest.mark.parametrize(
    ("error_cls", "code", "status"),
    [
        (genai_errors.ClientError, 400, "INVALID_ARGUMENT"),
        (genai_errors.ClientError, 429, "RESOURCE_EXHAUSTED"),
        (genai_errors.ServerError, 500, "INTERNAL"),
    ],
)
def test_other_api_errors_map_to_request_failed(error_cls: type[genai_errors.APIError], code: int, status: str) -> None:
    provider, _ = _provider(_api_error(error_cls, code, status))
    with pytest.raises(ProviderRequestFailed) as excinfo:
        _complete(provider)
    assert excinfo.value.status_code == code


def test_transport_errors_map_to_provider_unavailable() -> None:
    provider, _ = _provider(httpx.ConnectError("connection refused"))
    with pytest.raises(ProviderUnavailable):
        _complete(provider)


def test_extract_falls_back_to_candidate_parts() -> None:
    part_a = SimpleNamespace(text='{"answer": ')
    part_b = SimpleNamespace(text='"hi"}')
    response = SimpleNamespace(
        text=None,
        candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part_a, part_b]))],
    )
    assert extract_response_text(response) == '{"answer": "hi"}'


@pytest.mark.parametrize(
    "response",
    [
        SimpleNamespace(text="   ", candidates=[]),
        SimpleNamespace(text=None, candidates=None),
        SimpleNamespace(text=None, candidates=[SimpleNamespace(content=SimpleNamespace(parts=[]))]),
    ],
)
def test_nothing_extractable_is_empty_response(response: Any) -> None:
    with pytest.raises(EmptyResponse):
        extract_response_text(response)
