from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from parent_helper.services.ai.errors import ContentGenerationError, MalformedAIResponse

logger = logging.getLogger("parent_helper.api.errors")

_STATUS_CODE_TO_ERROR_CODE: dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: "BAD_REQUEST",
    status.HTTP_401_UNAUTHORIZED: "UNAUTHORIZED",
    status.HTTP_403_FORBIDDEN: "FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_409_CONFLICT: "CONFLICT",
    status.HTTP_422_UNPROCESSABLE_ENTITY: "VALIDATION_ERROR",
    status.HTTP_423_LOCKED: "ACCOUNT_LOCKED",
    status.HTTP_429_TOO_MANY_REQUESTS: "RATE_LIMIT",
}

CONTENT_ERROR_RESPONSES: dict[str, tuple[int, str]] = {
    "InvalidAgeBand": (status.HTTP_400_BAD_REQUEST, "INVALID_AGE_BAND"),
    "MissingCredential": (status.HTTP_500_INTERNAL_SERVER_ERROR, "AI_MISCONFIGURED"),
    "ProviderUnavailable": (status.HTTP_503_SERVICE_UNAVAILABLE, "AI_UNAVAILABLE"),
    "ProviderRequestFailed": (status.HTTP_502_BAD_GATEWAY, "AI_PROVIDER_ERROR"),
    "EmptyResponse": (status.HTTP_502_BAD_GATEWAY, "AI_EMPTY_RESPONSE"),
    "MalformedAIResponse": (status.HTTP_502_BAD_GATEWAY, "AI_MALFORMED_RESPONSE"),
}


def _build_error(
    *,
    code: str,
    message: str,
    details: Any | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        payload["details"] = details
    return payload


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    code = _STATUS_CODE_TO_ERROR_CODE.get(exc.status_code, "HTTP_ERROR")
    message = "Request failed"
    details: Any | None = None

    if isinstance(exc.detail, str):
        message = exc.detail
    elif isinstance(exc.detail, Mapping):
        raw_code = exc.detail.get("code")
        raw_message = exc.detail.get("message")
        raw_details = exc.detail.get("details")
        if isinstance(raw_code, str) and raw_code:
            code = raw_code
        if isinstance(raw_message, str) and raw_message:
            message = raw_message
        if raw_details is not None:
            details = raw_details
    elif exc.detail is not None:
        details = exc.detail

    return JSONResponse(
        status_code=exc.status_code,
        content=_build_error(code=code, message=message, details=details),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_build_error(
            code="VALIDATION_ERROR",
            message="Validation failed",
            details=exc.errors(),
        ),
    )


def content_error_response(exc: ContentGenerationError) -> tuple[int, dict[str, Any]]:
    status_code, code = CONTENT_ERROR_RESPONSES.get(
        exc.kind,
        (status.HTTP_500_INTERNAL_SERVER_ERROR, "AI_ERROR"),
    )
    details: dict[str, Any] | None = None
    if isinstance(exc, MalformedAIResponse) and exc.snippet:
        details = {"snippet": exc.snippet}
    return status_code, _build_error(code=code, message=exc.message, details=details)


async def content_generation_exception_handler(request: Request, exc: ContentGenerationError) -> JSONResponse:
    status_code, payload = content_error_response(exc)
    logger.warning(
        "ai.request.failed",
        extra={
            "request_id": getattr(request.state, "request_id", None),
            "user_id": getattr(request.state, "user_id", None),
            "route": request.url.path,
            "status_code": status_code,
            "error_kind": exc.kind,
        },
    )
    return JSONResponse(status_code=status_code, content=payload)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "unhandled_exception",
        extra={"request_id": getattr(request.state, "request_id", None), "route": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_build_error(code="INTERNAL_ERROR", message="Internal server error"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ContentGenerationError, content_generation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
