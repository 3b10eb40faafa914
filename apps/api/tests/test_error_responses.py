from __future__ import annotations

import pytest

from parent_helper.core.csrf import csrf_tokens_match
from parent_helper.core.exceptions import content_error_response
from parent_helper.services.ai.errors import (
    ContentGenerationError,
    EmptyResponse,
    InvalidAgeBand,
    MalformedAIResponse,
    MissingCredential,
    ProviderRequestFailed,
    ProviderUnavailable,
)


@pytest.mark.parametrize(
    ("error", "status_code", "code"),
    [
        (InvalidAgeBand("teen"), 400, "INVALID_AGE_BAND"),
        (MissingCredential(), 500, "AI_MISCONFIGURED"),
        (ProviderUnavailable(), 503, "AI_UNAVAILABLE"),
        (ProviderRequestFailed("bad", status_code=400), 502, "AI_PROVIDER_ERROR"),
        (EmptyResponse(), 502, "AI_EMPTY_RESPONSE"),
        (MalformedAIResponse("bad json"), 502, "AI_MALFORMED_RESPONSE"),
    ],
)
def test_content_errors_map_to_status_and_code(error: ContentGenerationError, status_code: int, code: str) -> None:
    status, payload = content_error_response(error)
    assert status == status_code
    assert payload["code"] == code
    assert payload["message"] == error.message


def test_malformed_response_carries_snippet_details() -> None:
    _, payload = content_error_response(MalformedAIResponse("bad json", raw_text="x" * 500))
    snippet = payload["details"]["snippet"]
    assert len(snippet) == 180
    assert snippet.endswith("...")


def test_short_snippet_is_kept_whole() -> None:
    _, payload = content_error_response(MalformedAIResponse("bad json", raw_text="  oops  "))
    assert payload["details"] == {"snippet": "oops"}


def test_csrf_tokens_must_match() -> None:
    assert csrf_tokens_match("abc", "abc")
    assert not csrf_tokens_match("abc", "abd")
    assert not csrf_tokens_match(None, "abc")
    assert not csrf_tokens_match("abc", None)
