from __future__ import annotations

import logging
from time import perf_counter
from typing import Any
from uuid import uuid4

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

logger = logging.getLogger("parent_helper.api.request")

REQUEST_ID_HEADER = "X-Request-Id"
# Path parameters that name a user-owned record.
RESOURCE_ID_PARAMS = ("child_id", "session_id", "template_id")


def _resolve_route(request: Request) -> str:
    route_path = getattr(request.scope.get("route"), "path", None)
    return route_path if isinstance(route_path, str) else request.url.path


def _resource_ids(request: Request) -> dict[str, int | str]:
    params = request.scope.get("path_params") or {}
    ids: dict[str, int | str] = {}
    for name in RESOURCE_ID_PARAMS:
        value = params.get(name)
        if value is None:
            continue
        ids[name] = int(value) if isinstance(value, str) and value.isdigit() else value
    return ids


def request_log_context(request: Request, *, status_code: int, started: float) -> dict[str, Any]:
    return {
        "request_id": getattr(request.state, "request_id", None),
        "user_id": getattr(request.state, "user_id", None),
        "route": _resolve_route(request),
        "method": request.method,
        "status_code": status_code,
        "execution_time_ms": round((perf_counter() - started) * 1000, 2),
        **_resource_ids(request),
    }


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = perf_counter()
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("request.failed", extra=request_log_context(request, status_code=500, started=started))
            raise

        logger.info(
            "request.completed",
            extra=request_log_context(request, status_code=response.status_code, started=started),
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
