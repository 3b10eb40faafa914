from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from parent_helper.services.ai.errors import (
    EmptyResponse,
    MissingCredential,
    ProviderRequestFailed,
    ProviderUnavailable,
)

logger = logging.getLogger(__name__)

RETRIABLE_STATUS_CODES = frozenset({503})


def _direct_text(response: Any) -> str | None:
    try:
        text = response.text
    except (AttributeError, ValueError):
        return None
    return text if isinstance(text, str) else None


def _candidate_parts_text(response: Any) -> str | None:
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None
    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []
    texts = [part.text for part in parts if isinstance(getattr(part, "text", None), str)]
    return "".join(texts) if texts else None


# Known response shapes, tried in order. Support a new shape by adding an
# extractor here.
RESPONSE_TEXT_EXTRACTORS: tuple[Callable[[Any], str | None], ...] = (
    _direct_text,
    _candidate_parts_text,
)


def extract_response_text(response: Any) -> str:
    for extractor in RESPONSE_TEXT_EXTRACTORS:
        text = extractor(response)
        if text and text.strip():
            return text
    raise EmptyResponse()


class GeminiProvider:
    key = "gemini"

    def __init__(self, *, api_key: str | None, model: str, client: Any | None = None) -> None:
        self.api_key = api_key
        self.model = model
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def complete(self, prompt: str, *, max_output_tokens: int, temperature: float) -> str:
        # Boot only warns about a missing key; every call checks it.
        if not self.api_key:
            raise MissingCredential()
        client = self._get_client()
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            max_output_tokens=max_output_tokens,
            temperature=temperature,
        )
        try:
            response = await client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=config,
            )
        except genai_errors.APIError as exc:
            if exc.code in RETRIABLE_STATUS_CODES:
                raise ProviderUnavailable(status_code=exc.code) from exc
            logger.warning("ai.provider.error", extra={"status_code": exc.code, "error_kind": type(exc).__name__})
            raise ProviderRequestFailed(f"AI provider request failed ({exc.code})", status_code=exc.code) from exc
        except httpx.TransportError as exc:
            raise ProviderUnavailable(f"AI provider unreachable: {type(exc).__name__}") from exc
        return extract_response_text(response)
