from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from parent_helper.services.ai.content import AgeBand, SafetyFlag, Tone


def _strip_optional(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


class AskRequest(BaseModel):
    question: str = Field(min_length=5, max_length=500)
    age_group: AgeBand | None = None
    child_id: int | None = None
    child_emotion: str | None = Field(default=None, max_length=50)
    tone: Tone | None = None
    language: str | None = Field(default=None, max_length=20)

    @field_validator("question")
    @classmethod
    def strip_question(cls, value: str) -> str:
        stripped = value.strip()
        if len(stripped) < 5:
            raise ValueError("question is too short")
        return stripped

    @field_validator("child_emotion", "language")
    @classmethod
    def strip_optional_text(cls, value: str | None) -> str | None:
        return _strip_optional(value)

    @model_validator(mode="after")
    def require_age_group_or_child(self) -> AskRequest:
        if self.age_group is None and self.child_id is None:
            raise ValueError("Provide age_group or child_id")
        return self


class FollowUpRequest(BaseModel):
    question: str = Field(min_length=5, max_length=500)
    child_emotion: str | None = Field(default=None, max_length=50)
    tone: Tone | None = None
    language: str | None = Field(default=None, max_length=20)

    @field_validator("question")
    @classmethod
    def strip_question(cls, value: str) -> str:
        stripped = value.strip()
        if len(stripped) < 5:
            raise ValueError("question is too short")
        return stripped

    @field_validator("child_emotion", "language")
    @classmethod
    def strip_optional_text(cls, value: str | None) -> str | None:
        return _strip_optional(value)


class FeedbackRequest(BaseModel):
    helpful: bool | None = None
    rating: int | None = Field(default=None, ge=1, le=5)
    comment: str | None = Field(default=None, max_length=500)

    @field_validator("comment")
    @classmethod
    def strip_comment(cls, value: str | None) -> str | None:
        return _strip_optional(value)

    @model_validator(mode="after")
    def require_any_feedback(self) -> FeedbackRequest:
        if self.helpful is None and self.rating is None and not self.comment:
            raise ValueError("Provide helpful, rating, or comment")
        return self


class AnalysisOut(BaseModel):
    topic: str = ""
    intent: str = ""
    age_level: str = ""
    emotion: str = ""


class SafetyOut(BaseModel):
    flag: SafetyFlag
    notes: list[str] = Field(default_factory=list)
    safe_answer: str | None = None


class AnswerResponse(BaseModel):
    id: int | None = None
    analysis: AnalysisOut
    answer: str
    parent_tips: list[str]
    story: str
    activities: list[str]
    safety: SafetyOut
    tone: Tone
    language: str


class FollowUpOut(BaseModel):
    question: str
    child_emotion: str | None = None
    tone: Tone
    language: str
    answer: str
    final_answer: str
    safety_flag: SafetyFlag
    safety_notes: list[str] = Field(default_factory=list)
    safe_answer: str | None = None
    created_at: str | None = None


class FeedbackOut(BaseModel):
    helpful: bool | None = None
    rating: int | None = None
    comment: str | None = None
    created_at: str | None = None


class QuestionSessionOut(BaseModel):
    id: int
    child_id: int | None
    question: str
    age_group: AgeBand
    child_emotion: str | None
    tone: Tone
    language: str
    analysis: dict[str, Any]
    answer: str
    final_answer: str
    parent_tips: list[str]
    story: str
    activities: list[str]
    safety_flag: SafetyFlag
    safety_notes: list[str]
    safe_answer: str | None
    feedback: list[FeedbackOut]
    follow_ups: list[FollowUpOut]
    created_at: datetime | None = None
    updated_at: datetime | None = None


class QuestionHistoryResponse(BaseModel):
    items: list[QuestionSessionOut]
    page: int
    limit: int
    total: int
