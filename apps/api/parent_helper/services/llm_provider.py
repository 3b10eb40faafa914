from __future__ import annotations

from typing import Protocol

from parent_helper.core.config import settings
from parent_helper.services.providers.gemini import GeminiProvider


class CompletionProvider(Protocol):
    key: str

    async def complete(self, prompt: str, *, max_output_tokens: int, temperature: float) -> str: ...


def get_completion_provider(provider_key: str | None = None) -> CompletionProvider:
    normalized = (provider_key or "gemini").strip().lower()
    if normalized == "gemini":
        return GeminiProvider(api_key=settings.gemini_api_key, model=settings.gemini_model)
    raise ValueError(f"Unsupported completion provider: {provider_key}")
