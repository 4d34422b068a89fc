"""Initial schema for thesis defense evaluations

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""

import typing as t

from alembic import op
from sqlalchemy import func as f
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.schema import Column, ForeignKey, UniqueConstraint
from sqlalchemy.types import Boolean, DateTime, Float, Integer, JSON, String, Text

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | t.Sequence[str] | None = None
depends_on: str | t.Sequence[str] | None = None

Key = String(22)
Timestamp = DateTime(timezone=True)
Document = JSON().with_variant(JSONB(), "postgresql")


def _timestamps() -> list[Column[t.Any]]:
    return [
        Column("create_time", Timestamp, server_default=f.now(), nullable=False),
        Column("update_time", Timestamp, server_default=f.now(), onupdate=f.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        Column("user_id", Key, primary_key=True),
        Column("email", String, unique=True, nullable=False),
        Column("name", String, nullable=False),
        Column("role", String, nullable=False),
        *_timestamps(),
    )

    # Groups
    op.create_table(
        "thesis_groups",
        Column("group_id", Key, primary_key=True),
        Column("title", String, nullable=False),
        Column("program", String, nullable=True),
        Column("term", String, nullable=True),
        *_timestamps(),
    )
    op.create_table(
        "group_members",
        Column("group_id", Key, ForeignKey("thesis_groups.group_id", ondelete="CASCADE"), primary_key=True),
        Column("student_id", Key, ForeignKey("users.user_id"), primary_key=True),
        Column("create_time", Timestamp, server_default=f.now(), nullable=False),
    )

    # Rubrics
    op.create_table(
        "rubric_templates",
        Column("template_id", Key, primary_key=True),
        Column("name", String, nullable=False),
        Column("version", Integer, nullable=False, server_default="1"),
        Column("active", Boolean, nullable=False, server_default="1"),
        Column("personal_max_score", Float, nullable=False, server_default="100"),
        *_timestamps(),
    )
    op.create_table(
        "rubric_criteria",
        Column("criterion_id", Key, primary_key=True),
        Column(
            "template_id", Key, ForeignKey("rubric_templates.template_id", ondelete="CASCADE"), nullable=False
        ),
        Column("label", String, nullable=False),
        Column("description", Text, nullable=True),
        Column("weight", Float, nullable=False),
        Column("min_score", Float, nullable=False, server_default="0"),
        Column("max_score", Float, nullable=False, server_default="10"),
    )
    op.create_index("ix_rubric_criteria_template_id", "rubric_criteria", ["template_id"])

    # Schedules
    op.create_table(
        "defense_schedules",
        Column("schedule_id", Key, primary_key=True),
        Column("group_id", Key, ForeignKey("thesis_groups.group_id"), nullable=False),
        Column("rubric_template_id", Key, ForeignKey("rubric_templates.template_id"), nullable=True),
        Column("scheduled_at", Timestamp, nullable=False),
        Column("room", String, nullable=True),
        Column("status", String, nullable=False, server_default="scheduled"),
        *_timestamps(),
    )
    op.create_index("ix_defense_schedules_group_id", "defense_schedules", ["group_id"])
    op.create_table(
        "schedule_panelists",
        Column(
            "schedule_id", Key, ForeignKey("defense_schedules.schedule_id", ondelete="CASCADE"), primary_key=True
        ),
        Column("panelist_id", Key, ForeignKey("users.user_id"), primary_key=True),
        Column("create_time", Timestamp, server_default=f.now(), nullable=False),
    )

    # Evaluations
    op.create_table(
        "evaluations",
        Column("evaluation_id", Key, primary_key=True),
        Column("schedule_id", Key, ForeignKey("defense_schedules.schedule_id"), nullable=False),
        Column("evaluator_id", Key, ForeignKey("users.user_id"), nullable=False),
        Column("status", String, nullable=False, server_default="pending"),
        Column("submitted_at", Timestamp, nullable=True),
        Column("locked_at", Timestamp, nullable=True),
        Column("extras", Document, nullable=False),
        *_timestamps(),
        UniqueConstraint("schedule_id", "evaluator_id", name="uq_evaluations_schedule_evaluator"),
    )
    op.create_table(
        "evaluation_scores",
        Column(
            "evaluation_id", Key, ForeignKey("evaluations.evaluation_id", ondelete="CASCADE"), primary_key=True
        ),
        Column("criterion_id", Key, primary_key=True),
        Column("score", Float, nullable=False),
        Column("comment", Text, nullable=True),
    )
    op.create_table(
        "student_evaluations",
        Column("student_evaluation_id", Key, primary_key=True),
        Column("schedule_id", Key, ForeignKey("defense_schedules.schedule_id"), nullable=False),
        Column("student_id", Key, ForeignKey("users.user_id"), nullable=False),
        Column("status", String, nullable=False, server_default="pending"),
        Column("submitted_at", Timestamp, nullable=True),
        Column("locked_at", Timestamp, nullable=True),
        Column("answers", Document, nullable=False),
        *_timestamps(),
        UniqueConstraint("schedule_id", "student_id", name="uq_student_evaluations_schedule_student"),
    )

    # Audit
    op.create_table(
        "audit_logs",
        Column("audit_id", Key, primary_key=True),
        Column("actor_id", Key, ForeignKey("users.user_id"), nullable=False),
        Column("action", String, nullable=False),
        Column("entity", String, nullable=False),
        Column("entity_id", String, nullable=False),
        Column("details", Document, nullable=False),
        Column("create_time", Timestamp, server_default=f.now(), nullable=False),
    )
    op.create_index("ix_audit_logs_entity", "audit_logs", ["entity", "entity_id"])


def downgrade() -> None:
    op.drop_index("ix_audit_logs_entity", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_table("student_evaluations")
    op.drop_table("evaluation_scores")
    op.drop_table("evaluations")
    op.drop_table("schedule_panelists")
    op.drop_index("ix_defense_schedules_group_id", table_name="defense_schedules")
    op.drop_table("defense_schedules")
    op.drop_index("ix_rubric_criteria_template_id", table_name="rubric_criteria")
    op.drop_table("rubric_criteria")
    op.drop_table("rubric_templates")
    op.drop_table("group_members")
    op.drop_table("thesis_groups")
    op.drop_table("users")
