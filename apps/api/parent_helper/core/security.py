from __future__ import annotations

from datetime import UTC, datetime, timedelta
from secrets import token_urlsafe
from typing import Any

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from parent_helper.core.config import settings

JWT_ISSUER = "parent-helper"
SESSION_TOKEN_DAYS = 7
SESSION_COOKIE_NAME = "parent_helper_session"
CSRF_COOKIE_NAME = "parent_helper_csrf"

_password_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    return _password_hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return _password_hasher.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def create_session_token(*, user_id: int, email: str) -> str:
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        "iss": JWT_ISSUER,
        "sub": str(user_id),
        "email": email,
        "type": "session",
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(days=SESSION_TOKEN_DAYS)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm="HS256")


def decode_token(token: str) -> dict[str, Any]:
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=["HS256"],
        issuer=JWT_ISSUER,
    )


def generate_csrf_token() -> str:
    return token_urlsafe(32)
