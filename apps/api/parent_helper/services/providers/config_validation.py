from __future__ import annotations

import logging

from parent_helper.core.config import settings

logger = logging.getLogger(__name__)

SUPPORTED_SAMESITE_VALUES = {"none", "lax", "strict"}


def validate_ai_provider_config() -> tuple[bool, list[str]]:
    warnings: list[str] = []
    if not (settings.gemini_api_key or "").strip():
        warnings.append("GEMINI_API_KEY is missing. AI endpoints will fail until it is configured.")
    if not (settings.gemini_model or "").strip():
        warnings.append("GEMINI_MODEL is empty. AI endpoints will fail until it is configured.")
    if settings.ai_max_retries < 0:
        warnings.append("PARENT_HELPER_AI_MAX_RETRIES is negative. Retries are disabled.")
    return not warnings, warnings


def validate_ai_provider_config_on_boot() -> None:
    valid, warnings = validate_ai_provider_config()
    for item in warnings:
        logger.warning(item)
    if valid:
        logger.info("AI provider config validated successfully.")


def validate_runtime_security_on_boot() -> None:
    env = (settings.app_env or "development").strip().lower()
    origins = [item.strip() for item in (settings.cors_allowed_origins or "").split(",") if item.strip()]
    same_site = (settings.auth_cookie_samesite or "lax").strip().lower()

    if env == "production":
        if not origins:
            raise RuntimeError("PARENT_HELPER_CORS_ALLOWED_ORIGINS must be set in production.")
        if "*" in origins:
            raise RuntimeError("Wildcard CORS origin is not allowed in production.")
        if any("localhost" in origin or "127.0.0.1" in origin for origin in origins):
            raise RuntimeError("localhost/127.0.0.1 CORS origins are not allowed in production.")
        if same_site not in SUPPORTED_SAMESITE_VALUES:
            raise RuntimeError("PARENT_HELPER_AUTH_COOKIE_SAMESITE must be one of: none, lax, strict.")
        if same_site == "none" and not settings.auth_cookie_secure:
            raise RuntimeError(
                "PARENT_HELPER_AUTH_COOKIE_SECURE must be true when PARENT_HELPER_AUTH_COOKIE_SAMESITE=none."
            )
        if len(settings.jwt_secret) < 32:
            raise RuntimeError("PARENT_HELPER_JWT_SECRET must be at least 32 characters in production.")
    elif same_site not in SUPPORTED_SAMESITE_VALUES:
        logger.warning("Invalid PARENT_HELPER_AUTH_COOKIE_SAMESITE value. Expected none/lax/strict.")
