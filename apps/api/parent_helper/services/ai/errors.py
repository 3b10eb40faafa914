from __future__ import annotations

SNIPPET_MAX_CHARS = 180


class ContentGenerationError(Exception):
    """Base failure raised by the content orchestrator.

    ``kind`` names the failure class so callers can map it without
    importing every subclass.
    """

    kind = "ContentGenerationError"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidAgeBand(ContentGenerationError):
    kind = "InvalidAgeBand"

    def __init__(self, value: object) -> None:
        super().__init__(f"Invalid age group: {value!r}")
        self.value = value


class MissingCredential(ContentGenerationError):
    kind = "MissingCredential"

    def __init__(self, message: str = "GEMINI_API_KEY is missing") -> None:
        super().__init__(message)


class ProviderUnavailable(ContentGenerationError):
    kind = "ProviderUnavailable"

    def __init__(self, message: str = "AI provider is temporarily unavailable", *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProviderRequestFailed(ContentGenerationError):
    kind = "ProviderRequestFailed"

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class EmptyResponse(ContentGenerationError):
    kind = "EmptyResponse"

    def __init__(self, message: str = "No AI content returned") -> None:
        super().__init__(message)


class MalformedAIResponse(ContentGenerationError):
    kind = "MalformedAIResponse"

    def __init__(self, message: str, *, raw_text: str | None = None) -> None:
        super().__init__(message)
        self.snippet = truncate_snippet(raw_text)


def truncate_snippet(raw_text: str | None, limit: int = SNIPPET_MAX_CHARS) -> str | None:
    if raw_text is None:
        return None
    text = raw_text.strip()
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."
