"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


age_group_enum = postgresql.ENUM("3-5", "6-8", "9-12", name="age_group", create_type=False)
content_tone_enum = postgresql.ENUM("supportive", "concise", name="content_tone", create_type=False)
plan_type_enum = postgresql.ENUM(
    "daily_routine",
    "bedtime_script",
    "screen_time_plan",
    "tricky_moment_script",
    name="plan_type",
    create_type=False,
)
safety_flag_enum = postgresql.ENUM("safe", "unsafe", name="safety_flag", create_type=False)


def upgrade() -> None:
    bind = op.get_bind()
    age_group_enum.create(bind, checkfirst=True)
    content_tone_enum.create(bind, checkfirst=True)
    plan_type_enum.create(bind, checkfirst=True)
    safety_flag_enum.create(bind, checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("failed_login_attempts", sa.Integer(), server_default="0", nullable=False),
        sa.Column("locked_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "child_profiles",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("age_group", age_group_enum, nullable=False),
        sa.Column("notes", sa.String(length=300), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_child_profiles_user_id_created_at", "child_profiles", ["user_id", "created_at"])

    op.create_table(
        "question_sessions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("child_id", sa.Integer(), nullable=True),
        sa.Column("question", sa.Text(), nullable=False),
        sa.Column("age_group", age_group_enum, nullable=False),
        sa.Column("child_emotion", sa.String(length=50), nullable=True),
        sa.Column("tone", content_tone_enum, server_default="supportive", nullable=False),
        sa.Column("language", sa.String(length=20), server_default="en", nullable=False),
        sa.Column("analysis", postgresql.JSONB(astext_type=sa.Text()), server_default="{}", nullable=False),
        sa.Column("answer", sa.Text(), nullable=False),
        sa.Column("final_answer", sa.Text(), nullable=False),
        sa.Column("parent_tips", postgresql.JSONB(astext_type=sa.Text()), server_default="[]", nullable=False),
        sa.Column("story", sa.Text(), server_default="", nullable=False),
        sa.Column("activities", postgresql.JSONB(astext_type=sa.Text()), server_default="[]", nullable=False),
        sa.Column("safety_flag", safety_flag_enum, server_default="safe", nullable=False),
        sa.Column("safety_notes", postgresql.JSONB(astext_type=sa.Text()), server_default="[]", nullable=False),
        sa.Column("safe_answer", sa.Text(), nullable=True),
        sa.Column("feedback", postgresql.JSONB(astext_type=sa.Text()), server_default="[]", nullable=False),
        sa.Column("follow_ups", postgresql.JSONB(astext_type=sa.Text()), server_default="[]", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["child_id"], ["child_profiles.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_question_sessions_user_id_created_at", "question_sessions", ["user_id", "created_at"])

    op.create_table(
        "plan_templates",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=120), nullable=False),
        sa.Column("type", plan_type_enum, nullable=False),
        sa.Column("age_group", age_group_enum, nullable=False),
        sa.Column("goal", sa.String(length=300), nullable=False),
        sa.Column("child_emotion", sa.String(length=50), nullable=True),
        sa.Column("tone", content_tone_enum, server_default="supportive", nullable=False),
        sa.Column("language", sa.String(length=20), server_default="en", nullable=False),
        sa.Column("plan", postgresql.JSONB(astext_type=sa.Text()), server_default="{}", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_plan_templates_user_id_created_at", "plan_templates", ["user_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_plan_templates_user_id_created_at", table_name="plan_templates")
    op.drop_table("plan_templates")
    op.drop_index("ix_question_sessions_user_id_created_at", table_name="question_sessions")
    op.drop_table("question_sessions")
    op.drop_index("ix_child_profiles_user_id_created_at", table_name="child_profiles")
    op.drop_table("child_profiles")
    op.drop_table("users")

    bind = op.get_bind()
    safety_flag_enum.drop(bind, checkfirst=True)
    plan_type_enum.drop(bind, checkfirst=True)
    content_tone_enum.drop(bind, checkfirst=True)
    age_group_enum.drop(bind, checkfirst=True)
