from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from parent_helper.core.config import settings
from parent_helper.core.security import CSRF_COOKIE_NAME, SESSION_COOKIE_NAME

_SAFE_METHODS = {"GET", "HEAD", "OPTIONS"}


def _is_exempt_path(path: str) -> bool:
    raw_items = settings.csrf_exempt_paths.split(",")
    exempt_paths = [item.strip() for item in raw_items if item.strip()]
    return path in exempt_paths


def csrf_tokens_match(cookie_value: str | None, header_value: str | None) -> bool:
    return bool(cookie_value) and bool(header_value) and cookie_value == header_value


class CSRFMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method.upper() in _SAFE_METHODS or _is_exempt_path(request.url.path):
            return await call_next(request)

        # Bearer-authenticated clients carry no ambient credentials.
        if request.cookies.get(SESSION_COOKIE_NAME) is None:
            return await call_next(request)

        csrf_cookie = request.cookies.get(CSRF_COOKIE_NAME)
        csrf_header = request.headers.get("X-CSRF-Token")
        if not csrf_tokens_match(csrf_cookie, csrf_header):
            return JSONResponse(
                status_code=403,
                content={"code": "CSRF_VALIDATION_FAILED", "message": "CSRF token validation failed"},
            )

        return await call_next(request)
