from __future__ import annotations

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from parent_helper.api.deps import CurrentUser, DBSession
from parent_helper.models import ChildProfile
from parent_helper.schemas.children import ChildCreateRequest, ChildOut, ChildUpdateRequest
from parent_helper.schemas.common import OkResponse

router = APIRouter(prefix="/api/children", tags=["children"])


def _child_out(child: ChildProfile) -> ChildOut:
    return ChildOut(
        id=child.id,
        name=child.name,
        age_group=child.age_group,
        notes=child.notes,
        created_at=child.created_at,
        updated_at=child.updated_at,
    )


def get_owned_child(db: Session, *, child_id: int, user_id: int) -> ChildProfile:
    child = db.scalar(
        select(ChildProfile).where(
            ChildProfile.id == child_id,
            ChildProfile.user_id == user_id,
        ),
    )
    if child is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Child not found")
    return child


@router.get("", response_model=list[ChildOut])
def list_children(db: DBSession, user: CurrentUser) -> list[ChildOut]:
    children = db.scalars(
        select(ChildProfile)
        .where(ChildProfile.user_id == user.id)
        .order_by(ChildProfile.created_at.desc(), ChildProfile.id.desc()),
    ).all()
    return [_child_out(child) for child in children]


@router.post("", response_model=ChildOut, status_code=status.HTTP_201_CREATED)
def create_child(payload: ChildCreateRequest, db: DBSession, user: CurrentUser) -> ChildOut:
    child = ChildProfile(
        user_id=user.id,
        name=payload.name,
        age_group=payload.age_group,
        notes=payload.notes,
    )
    db.add(child)
    db.commit()
    return _child_out(child)


@router.put("/{child_id}", response_model=ChildOut)
def update_child(child_id: int, payload: ChildUpdateRequest, db: DBSession, user: CurrentUser) -> ChildOut:
    child = get_owned_child(db, child_id=child_id, user_id=user.id)
    changes = payload.model_dump(exclude_unset=True)
    if "name" in changes and changes["name"] is not None:
        child.name = changes["name"]
    if "age_group" in changes and changes["age_group"] is not None:
        child.age_group = changes["age_group"]
    if "notes" in changes:
        child.notes = changes["notes"]
    db.commit()
    return _child_out(child)


@router.delete("/{child_id}", response_model=OkResponse)
def delete_child(child_id: int, db: DBSession, user: CurrentUser) -> OkResponse:
    child = get_owned_child(db, child_id=child_id, user_id=user.id)
    db.delete(child)
    db.commit()
    return OkResponse()
