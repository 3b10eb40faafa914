from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator
from functools import partial
from typing import Annotated, Any, TypeVar

import anyio
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from parent_helper.core.config import settings
from parent_helper.core.security import SESSION_COOKIE_NAME, decode_token
from parent_helper.db.session import SessionLocal
from parent_helper.models import User
from parent_helper.services.ai.orchestrator import ContentOrchestrator
from parent_helper.services.llm_provider import get_completion_provider

auth_scheme = HTTPBearer(auto_error=False)

T = TypeVar("T")


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


DBSession = Annotated[Session, Depends(get_db)]


def build_content_orchestrator() -> ContentOrchestrator:
    return ContentOrchestrator(
        get_completion_provider(),
        max_retries=settings.ai_max_retries,
        retry_base_delay=settings.ai_retry_base_delay_ms / 1000,
    )


def get_content_orchestrator(request: Request) -> ContentOrchestrator:
    orchestrator = getattr(request.app.state, "content_orchestrator", None)
    if orchestrator is None:
        orchestrator = build_content_orchestrator()
        request.app.state.content_orchestrator = orchestrator
    return orchestrator


Orchestrator = Annotated[ContentOrchestrator, Depends(get_content_orchestrator)]


def run_async(func: Callable[..., Awaitable[T]], **kwargs: Any) -> T:
    """Run an async orchestrator call from a sync route's worker thread."""
    return anyio.from_thread.run(partial(func, **kwargs))


def _extract_token(request: Request, credentials: HTTPAuthorizationCredentials | None) -> str | None:
    cookie_token = request.cookies.get(SESSION_COOKIE_NAME)
    if cookie_token:
        return cookie_token
    if credentials is not None:
        return credentials.credentials
    return None


def get_current_user(
    db: DBSession,
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(auth_scheme)],
) -> User:
    token = _extract_token(request, credentials)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )

    try:
        payload = decode_token(token)
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
        ) from exc

    if payload.get("type") != "session":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session token",
        )

    sub = payload.get("sub")
    if not isinstance(sub, str) or not sub.isdigit():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token subject",
        )

    user = db.get(User, int(sub))
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    request.state.user_id = user.id
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
