from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PARENT_HELPER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str
    redis_url: str
    jwt_secret: str
    app_env: str = "development"
    cors_allowed_origins: str = "http://localhost:5173"
    auth_cookie_secure: bool = True
    auth_cookie_domain: str | None = None
    auth_cookie_samesite: str = "lax"
    csrf_exempt_paths: str = "/health,/docs,/redoc,/openapi.json,/api/auth/login,/api/auth/signup"
    account_lock_max_attempts: int = 5
    account_lock_minutes: int = 15
    rate_limit_requests: int = 30
    rate_limit_window_seconds: int = 300
    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("GEMINI_API_KEY", "PARENT_HELPER_GEMINI_API_KEY"),
    )
    gemini_model: str = Field(
        default="gemini-2.5-flash-lite",
        validation_alias=AliasChoices("GEMINI_MODEL", "PARENT_HELPER_GEMINI_MODEL"),
    )
    ai_retry_base_delay_ms: int = 500
    ai_max_retries: int = 2


settings = Settings()
