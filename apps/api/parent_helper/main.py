from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis

from parent_helper import models  # noqa: F401
from parent_helper.api.deps import build_content_orchestrator
from parent_helper.api.routes.auth import router as auth_router
from parent_helper.api.routes.children import router as children_router
from parent_helper.api.routes.plans import router as plans_router
from parent_helper.api.routes.questions import router as questions_router
from parent_helper.core.config import settings
from parent_helper.core.csrf import CSRFMiddleware
from parent_helper.core.exceptions import register_exception_handlers
from parent_helper.core.logging import setup_json_logging
from parent_helper.core.rate_limit import RateLimitMiddleware
from parent_helper.core.request_logging import RequestLoggingMiddleware
from parent_helper.services.providers.config_validation import (
    validate_ai_provider_config_on_boot,
    validate_runtime_security_on_boot,
)

setup_json_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    validate_ai_provider_config_on_boot()
    validate_runtime_security_on_boot()
    redis = Redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
    app.state.redis = redis
    app.state.content_orchestrator = build_content_orchestrator()
    try:
        yield
    finally:
        await redis.aclose()


app = FastAPI(title="parent-helper api", lifespan=lifespan)
register_exception_handlers(app)
allowed_origins = [item.strip() for item in settings.cors_allowed_origins.split(",") if item.strip()]
app.add_middleware(RateLimitMiddleware)
app.add_middleware(CSRFMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-CSRF-Token", "X-Request-Id"],
)
app.include_router(auth_router)
app.include_router(children_router)
app.include_router(questions_router)
app.include_router(plans_router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok", "env": settings.app_env}
