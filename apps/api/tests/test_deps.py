from __future__ import annotations

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials
from starlette.requests import Request

from fakes import FakeDB
from parent_helper.api.deps import get_current_user
from parent_helper.core.security import SESSION_COOKIE_NAME, create_session_token
from parent_helper.models import User


class _UserDB(FakeDB):
    def __init__(self, user: User | None) -> None:
        super().__init__()
        self.user = user

    def get(self, _model: type, ident: int) -> User | None:
        if self.user is not None and self.user.id == ident:
            return self.user
        return None


def _request(cookie: str | None = None) -> Request:
    headers = []
    if cookie is not None:
        headers.append((b"cookie", cookie.encode()))
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers})


def _user() -> User:
    user = User(email="parent@example.com", name="Pat", password_hash="x")
    user.id = 9
    return user


def test_cookie_session_authenticates() -> None:
    token = create_session_token(user_id=9, email="parent@example.com")
    request = _request(f"{SESSION_COOKIE_NAME}={token}")
    user = get_current_user(db=_UserDB(_user()), request=request, credentials=None)
    assert user.id == 9
    assert request.state.user_id == 9


def test_bearer_token_authenticates() -> None:
    token = create_session_token(user_id=9, email="parent@example.com")
    credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)
    user = get_current_user(db=_UserDB(_user()), request=_request(), credentials=credentials)
    assert user.email == "parent@example.com"


@pytest.mark.parametrize("token", [None, "garbage"])
def test_missing_or_invalid_token_is_unauthorized(token: str | None) -> None:
    credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials=token) if token else None
    with pytest.raises(HTTPException) as excinfo:
        get_current_user(db=_UserDB(_user()), request=_request(), credentials=credentials)
    assert excinfo.value.status_code == 401


def test_unknown_user_is_unauthorized() -> None:
    token = create_session_token(user_id=404, email="ghost@example.com")
    credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)
    with pytest.raises(HTTPException) as excinfo:
        get_current_user(db=_UserDB(_user()), request=_request(), credentials=credentials)
    assert excinfo.value.status_code == 401
