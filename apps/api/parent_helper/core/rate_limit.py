from __future__ import annotations

import logging
from dataclasses import dataclass

from fastapi import Request
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from parent_helper.core.config import settings

logger = logging.getLogger("parent_helper.api.rate_limit")

API_PREFIX = "/api"
LOGIN_PATH = "/api/auth/login"


@dataclass(frozen=True)
class RateLimitRule:
    key_prefix: str
    limit: int
    window_seconds: int


API_RULE = RateLimitRule(
    key_prefix="api",
    limit=settings.rate_limit_requests,
    window_seconds=settings.rate_limit_window_seconds,
)
LOGIN_RULE = RateLimitRule(key_prefix="login", limit=10, window_seconds=300)


def _extract_ip(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


async def _increment_and_check(redis: Redis, *, rule: RateLimitRule, ip: str) -> bool:
    key = f"rate:{rule.key_prefix}:{ip}"
    value = await redis.incr(key)
    if value == 1:
        await redis.expire(key, rule.window_seconds)
    return int(value) <= rule.limit


def _too_many_requests() -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={"code": "RATE_LIMIT", "message": "Too many requests, please try again later."},
    )


class RateLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        redis: Redis | None = getattr(request.app.state, "redis", None)
        if redis is None or not request.url.path.startswith(API_PREFIX):
            return await call_next(request)

        ip = _extract_ip(request)
        try:
            if not await _increment_and_check(redis, rule=API_RULE, ip=ip):
                return _too_many_requests()

            if request.url.path == LOGIN_PATH and request.method.upper() == "POST":
                if not await _increment_and_check(redis, rule=LOGIN_RULE, ip=ip):
                    return _too_many_requests()
        except (RedisError, OSError):
            # Keep API available if Redis is temporarily unavailable.
            logger.warning("rate_limit.unavailable", extra={"route": request.url.path})
            return await call_next(request)

        return await call_next(request)
