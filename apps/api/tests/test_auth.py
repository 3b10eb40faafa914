from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from fastapi import HTTPException, Response
from pydantic import ValidationError

from fakes import FakeDB
from parent_helper.api.routes.auth import login, logout, signup
from parent_helper.core.config import settings
from parent_helper.core.security import (
    SESSION_COOKIE_NAME,
    create_session_token,
    decode_token,
    hash_password,
    verify_password,
)
from parent_helper.models import User
from parent_helper.schemas.auth import LoginRequest, SignupRequest


def _user(password: str = "secret-pass") -> User:
    user = User(email="parent@example.com", name="Pat", password_hash=hash_password(password))
    user.id = 1
    user.failed_login_attempts = 0
    user.locked_until = None
    return user


def test_password_hash_roundtrip() -> None:
    password_hash = hash_password("secret-pass")
    assert verify_password("secret-pass", password_hash)
    assert not verify_password("wrong-pass", password_hash)
    assert not verify_password("secret-pass", "not-a-hash")


def test_session_token_claims() -> None:
    claims = decode_token(create_session_token(user_id=42, email="a@b.co"))
    assert claims["sub"] == "42"
    assert claims["type"] == "session"
    assert claims["email"] == "a@b.co"


def test_signup_validation() -> None:
    with pytest.raises(ValidationError):
        SignupRequest(email="not-an-email", password="secret-pass")
    with pytest.raises(ValidationError):
        SignupRequest(email="a@b.co", password="12345")


def test_signup_sets_session_cookie() -> None:
    db = FakeDB(scalar_values=[None])
    response = Response()
    result = signup(payload=SignupRequest(email="New@Example.com", password="secret-pass"), db=db, response=response)
    assert result.user.email == "new@example.com"
    assert decode_token(result.access_token)["sub"] == str(db.added[0].id)
    cookies = response.headers.getlist("set-cookie")
    assert any(cookie.startswith(f"{SESSION_COOKIE_NAME}=") and "HttpOnly" in cookie for cookie in cookies)


def test_signup_duplicate_email_conflicts() -> None:
    with pytest.raises(HTTPException) as excinfo:
        signup(
            payload=SignupRequest(email="parent@example.com", password="secret-pass"),
            db=FakeDB(scalar_values=[_user()]),
            response=Response(),
        )
    assert excinfo.value.status_code == 409


def test_login_success_resets_failures() -> None:
    user = _user()
    user.failed_login_attempts = 2
    result = login(
        payload=LoginRequest(email="parent@example.com", password="secret-pass"),
        db=FakeDB(scalar_values=[user]),
        response=Response(),
    )
    assert result.user.id == 1
    assert user.failed_login_attempts == 0


def test_repeated_failures_lock_the_account() -> None:
    user = _user()
    user.failed_login_attempts = settings.account_lock_max_attempts - 1
    with pytest.raises(HTTPException) as excinfo:
        login(
            payload=LoginRequest(email="parent@example.com", password="wrong-pass"),
            db=FakeDB(scalar_values=[user]),
            response=Response(),
        )
    assert excinfo.value.status_code == 423
    assert user.locked_until is not None


def test_locked_account_rejects_correct_password() -> None:
    user = _user()
    user.locked_until = datetime.now(UTC) + timedelta(minutes=5)
    with pytest.raises(HTTPException) as excinfo:
        login(
            payload=LoginRequest(email="parent@example.com", password="secret-pass"),
            db=FakeDB(scalar_values=[user]),
            response=Response(),
        )
    assert excinfo.value.status_code == 423


def test_logout_clears_cookies() -> None:
    response = Response()
    assert logout(response=response).message == "Logged out"
    cookies = response.headers.getlist("set-cookie")
    assert any(cookie.startswith(f"{SESSION_COOKIE_NAME}=") for cookie in cookies)
