from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from parent_helper.services.ai.content import AgeBand, PlanType, Tone


class PlanGenerateRequest(BaseModel):
    type: PlanType
    age_group: AgeBand
    goal: str = Field(min_length=5, max_length=300)
    child_emotion: str | None = Field(default=None, max_length=50)
    tone: Tone | None = None
    language: str | None = Field(default=None, max_length=20)
    title: str | None = Field(default=None, min_length=3, max_length=120)
    save_template: bool = False

    @field_validator("goal")
    @classmethod
    def strip_goal(cls, value: str) -> str:
        stripped = value.strip()
        if len(stripped) < 5:
            raise ValueError("goal is too short")
        return stripped

    @field_validator("child_emotion", "language")
    @classmethod
    def strip_optional_text(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str | None) -> str | None:
        if value is None:
            return None
        stripped = value.strip()
        if len(stripped) < 3:
            raise ValueError("title too short")
        return stripped


class ScheduleBlockOut(BaseModel):
    block: str
    items: list[str] = Field(default_factory=list)


class PlanOut(BaseModel):
    overview: str = ""
    schedule: list[ScheduleBlockOut] = Field(default_factory=list)
    script: str = ""
    tips: list[str] = Field(default_factory=list)
    boundaries: list[str] = Field(default_factory=list)
    activities: list[str] = Field(default_factory=list)
    reminders: list[str] = Field(default_factory=list)


class PlanGenerateResponse(BaseModel):
    plan: PlanOut
    saved: bool
    template_id: int | None = None


class PlanTemplateOut(BaseModel):
    id: int
    title: str
    type: PlanType
    age_group: AgeBand
    goal: str
    child_emotion: str | None
    tone: Tone
    language: str
    plan: dict[str, Any]
    created_at: datetime | None = None
