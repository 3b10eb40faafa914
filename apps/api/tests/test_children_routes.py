from __future__ import annotations

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from fakes import FakeDB
from parent_helper.api.routes.children import create_child, delete_child, list_children, update_child
from parent_helper.models import ChildProfile, User
from parent_helper.schemas.children import ChildCreateRequest, ChildUpdateRequest
from parent_helper.services.ai.content import AgeBand


def _user() -> User:
    user = User(email="parent@example.com", name="Pat", password_hash="x")
    user.id = 1
    return user


def _child() -> ChildProfile:
    child = ChildProfile(user_id=1, name="Sam", age_group=AgeBand.EARLY, notes="Loves dinosaurs")
    child.id = 3
    return child


def test_create_child_is_scoped_to_user() -> None:
    db = FakeDB()
    result = create_child(
        payload=ChildCreateRequest(name="  Sam ", age_group="6-8", notes=" "),
        db=db,
        user=_user(),
    )
    stored = db.added[0]
    assert stored.user_id == 1
    assert result.name == "Sam"
    assert result.age_group == AgeBand.EARLY
    assert result.notes is None


def test_create_child_validation() -> None:
    with pytest.raises(ValidationError):
        ChildCreateRequest(name="", age_group="6-8")
    with pytest.raises(ValidationError):
        ChildCreateRequest(name="Sam", age_group="13-15")
    with pytest.raises(ValidationError):
        ChildCreateRequest(name="Sam", age_group="6-8", notes="x" * 301)


def test_list_children() -> None:
    db = FakeDB(scalars_values=[[_child()]])
    result = list_children(db=db, user=_user())
    assert [child.name for child in result] == ["Sam"]


def test_update_is_partial() -> None:
    child = _child()
    db = FakeDB(scalar_values=[child])
    result = update_child(child_id=3, payload=ChildUpdateRequest(age_group="9-12"), db=db, user=_user())
    assert result.age_group == AgeBand.MIDDLE
    assert result.name == "Sam"
    assert result.notes == "Loves dinosaurs"
    assert db.commits == 1


def test_update_foreign_child_is_not_found() -> None:
    with pytest.raises(HTTPException) as excinfo:
        update_child(child_id=3, payload=ChildUpdateRequest(name="Max"), db=FakeDB(scalar_values=[None]), user=_user())
    assert excinfo.value.status_code == 404


def test_delete_child() -> None:
    child = _child()
    db = FakeDB(scalar_values=[child])
    assert delete_child(child_id=3, db=db, user=_user()).ok is True
    assert db.deleted == [child]
