from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from parent_helper.services.ai.content import AgeBand


def _strip_optional(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


class ChildCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    age_group: AgeBand
    notes: str | None = Field(default=None, max_length=300)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("name must not be blank")
        return stripped

    @field_validator("notes")
    @classmethod
    def strip_notes(cls, value: str | None) -> str | None:
        return _strip_optional(value)


class ChildUpdateRequest(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    age_group: AgeBand | None = None
    notes: str | None = Field(default=None, max_length=300)

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        stripped = value.strip()
        if not stripped:
            raise ValueError("name must not be blank")
        return stripped


class ChildOut(BaseModel):
    id: int
    name: str
    age_group: AgeBand
    notes: str | None
    created_at: datetime | None = None
    updated_at: datetime | None = None
