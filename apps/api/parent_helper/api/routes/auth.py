from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from fastapi import APIRouter, HTTPException, Response, status
from sqlalchemy import select

from parent_helper.api.deps import CurrentUser, DBSession
from parent_helper.core.config import settings
from parent_helper.core.security import (
    CSRF_COOKIE_NAME,
    SESSION_COOKIE_NAME,
    SESSION_TOKEN_DAYS,
    create_session_token,
    generate_csrf_token,
    hash_password,
    verify_password,
)
from parent_helper.models import User
from parent_helper.schemas.auth import (
    AuthResponse,
    LoginRequest,
    MeResponse,
    MessageResponse,
    SignupRequest,
    UserOut,
)

logger = logging.getLogger("parent_helper.api.auth")

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _cookie_samesite() -> str:
    return (settings.auth_cookie_samesite or "lax").strip().lower()


def _set_auth_cookies(response: Response, session_token: str, csrf_token: str) -> None:
    max_age = int(timedelta(days=SESSION_TOKEN_DAYS).total_seconds())
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=session_token,
        httponly=True,
        secure=settings.auth_cookie_secure,
        samesite=_cookie_samesite(),
        max_age=max_age,
        path="/",
        domain=settings.auth_cookie_domain,
    )
    response.set_cookie(
        key=CSRF_COOKIE_NAME,
        value=csrf_token,
        httponly=False,
        secure=settings.auth_cookie_secure,
        samesite=_cookie_samesite(),
        max_age=max_age,
        path="/",
        domain=settings.auth_cookie_domain,
    )


def _user_out(user: User) -> UserOut:
    return UserOut(id=user.id, email=user.email, name=user.name, created_at=user.created_at)


def _issue_session(response: Response, user: User) -> AuthResponse:
    session_token = create_session_token(user_id=user.id, email=user.email)
    csrf_token = generate_csrf_token()
    _set_auth_cookies(response, session_token, csrf_token)
    return AuthResponse(user=_user_out(user), access_token=session_token, csrf_token=csrf_token)


@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(payload: SignupRequest, db: DBSession, response: Response) -> AuthResponse:
    existing_user = db.scalar(select(User).where(User.email == payload.email))
    if existing_user is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already in use")

    user = User(
        email=payload.email,
        name=payload.name,
        password_hash=hash_password(payload.password),
        failed_login_attempts=0,
    )
    db.add(user)
    db.commit()
    logger.info("auth.signup", extra={"user_id": user.id})
    return _issue_session(response, user)


@router.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, db: DBSession, response: Response) -> AuthResponse:
    user = db.scalar(select(User).where(User.email == payload.email))
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    if user.locked_until is not None and user.locked_until > datetime.now(UTC):
        raise HTTPException(status_code=status.HTTP_423_LOCKED, detail="Account temporarily locked")

    if not verify_password(payload.password, user.password_hash):
        user.failed_login_attempts = (user.failed_login_attempts or 0) + 1
        if user.failed_login_attempts >= settings.account_lock_max_attempts:
            user.locked_until = datetime.now(UTC) + timedelta(minutes=settings.account_lock_minutes)
            user.failed_login_attempts = 0
            db.commit()
            logger.warning("auth.account_locked", extra={"user_id": user.id})
            raise HTTPException(status_code=status.HTTP_423_LOCKED, detail="Account temporarily locked")
        db.commit()
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    user.failed_login_attempts = 0
    user.locked_until = None
    db.commit()
    return _issue_session(response, user)


@router.post("/logout", response_model=MessageResponse)
def logout(response: Response) -> MessageResponse:
    for cookie_name in (SESSION_COOKIE_NAME, CSRF_COOKIE_NAME):
        response.delete_cookie(
            key=cookie_name,
            path="/",
            domain=settings.auth_cookie_domain,
            secure=settings.auth_cookie_secure,
            samesite=_cookie_samesite(),
        )
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=MeResponse)
def me(user: CurrentUser) -> MeResponse:
    return MeResponse(user=_user_out(user))
