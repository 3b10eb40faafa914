from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import (
    DateTime,
    Enum as SqlEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from parent_helper.db.base import Base
from parent_helper.services.ai.content import AgeBand, PlanType, SafetyFlag, Tone


def _enum_values(enum_cls: type[Enum]) -> list[str]:
    return [member.value for member in enum_cls]


AGE_GROUP_ENUM = SqlEnum(AgeBand, name="age_group", values_callable=_enum_values)
TONE_ENUM = SqlEnum(Tone, name="content_tone", values_callable=_enum_values)
PLAN_TYPE_ENUM = SqlEnum(PlanType, name="plan_type", values_callable=_enum_values)
SAFETY_FLAG_ENUM = SqlEnum(SafetyFlag, name="safety_flag", values_callable=_enum_values)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    failed_login_attempts: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    locked_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


class ChildProfile(Base):
    __tablename__ = "child_profiles"
    __table_args__ = (
        Index("ix_child_profiles_user_id_created_at", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    age_group: Mapped[AgeBand] = mapped_column(AGE_GROUP_ENUM, nullable=False)
    notes: Mapped[str | None] = mapped_column(String(300), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class QuestionSession(Base):
    __tablename__ = "question_sessions"
    __table_args__ = (
        Index("ix_question_sessions_user_id_created_at", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    child_id: Mapped[int | None] = mapped_column(ForeignKey("child_profiles.id", ondelete="SET NULL"), nullable=True)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    age_group: Mapped[AgeBand] = mapped_column(AGE_GROUP_ENUM, nullable=False)
    child_emotion: Mapped[str | None] = mapped_column(String(50), nullable=True)
    tone: Mapped[Tone] = mapped_column(TONE_ENUM, nullable=False, server_default=Tone.SUPPORTIVE.value)
    language: Mapped[str] = mapped_column(String(20), nullable=False, server_default="en")
    analysis: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, server_default="{}")
    answer: Mapped[str] = mapped_column(Text, nullable=False)
    final_answer: Mapped[str] = mapped_column(Text, nullable=False)
    parent_tips: Mapped[list[str]] = mapped_column(JSONB, nullable=False, server_default="[]")
    story: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    activities: Mapped[list[str]] = mapped_column(JSONB, nullable=False, server_default="[]")
    safety_flag: Mapped[SafetyFlag] = mapped_column(
        SAFETY_FLAG_ENUM,
        nullable=False,
        server_default=SafetyFlag.SAFE.value,
    )
    safety_notes: Mapped[list[str]] = mapped_column(JSONB, nullable=False, server_default="[]")
    safe_answer: Mapped[str | None] = mapped_column(Text, nullable=True)
    feedback: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False, server_default="[]")
    follow_ups: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False, server_default="[]")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class PlanTemplate(Base):
    __tablename__ = "plan_templates"
    __table_args__ = (
        Index("ix_plan_templates_user_id_created_at", "user_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    title: Mapped[str] = mapped_column(String(120), nullable=False)
    type: Mapped[PlanType] = mapped_column(PLAN_TYPE_ENUM, nullable=False)
    age_group: Mapped[AgeBand] = mapped_column(AGE_GROUP_ENUM, nullable=False)
    goal: Mapped[str] = mapped_column(String(300), nullable=False)
    child_emotion: Mapped[str | None] = mapped_column(String(50), nullable=True)
    tone: Mapped[Tone] = mapped_column(TONE_ENUM, nullable=False, server_default=Tone.SUPPORTIVE.value)
    language: Mapped[str] = mapped_column(String(20), nullable=False, server_default="en")
    plan: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, server_default="{}")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
