from parent_helper.services.providers.gemini import GeminiProvider

__all__ = ["GeminiProvider"]
