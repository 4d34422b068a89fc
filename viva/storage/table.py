import datetime
import typing as t

from sqlalchemy import ForeignKey, func, MetaData, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, MappedAsDataclass
from sqlalchemy.types import JSON

from viva.model import AuditLogID, EvaluationID, GroupID, RubricCriterionID, RubricTemplateID, ScheduleID, \
    StudentEvaluationID, UserID

from .type import ShortUUIDKeyType, UTCDateTime

metadata = MetaData()

JSONDocument = JSON().with_variant(JSONB(), "postgresql")


class base(MappedAsDataclass, DeclarativeBase):
    metadata = metadata
    type_annotation_map = {
        UserID: ShortUUIDKeyType(UserID),
        GroupID: ShortUUIDKeyType(GroupID),
        ScheduleID: ShortUUIDKeyType(ScheduleID),
        RubricTemplateID: ShortUUIDKeyType(RubricTemplateID),
        RubricCriterionID: ShortUUIDKeyType(RubricCriterionID),
        EvaluationID: ShortUUIDKeyType(EvaluationID),
        StudentEvaluationID: ShortUUIDKeyType(StudentEvaluationID),
        AuditLogID: ShortUUIDKeyType(AuditLogID),
        datetime.datetime: UTCDateTime(),
        dict[str, t.Any]: JSONDocument,
    }


# Users


class users(base):
    __tablename__ = "users"

    user_id: Mapped[UserID] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(unique=True)
    name: Mapped[str]
    role: Mapped[str]
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


# Thesis groups


class thesis_groups(base):
    __tablename__ = "thesis_groups"

    group_id: Mapped[GroupID] = mapped_column(primary_key=True)
    title: Mapped[str]
    program: Mapped[str | None] = mapped_column(default=None)
    term: Mapped[str | None] = mapped_column(default=None)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class group_members(base):
    __tablename__ = "group_members"

    group_id: Mapped[GroupID] = mapped_column(
        ForeignKey("thesis_groups.group_id", ondelete="CASCADE"), primary_key=True
    )
    student_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"), primary_key=True)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())


# Rubrics


class rubric_templates(base):
    __tablename__ = "rubric_templates"

    template_id: Mapped[RubricTemplateID] = mapped_column(primary_key=True)
    name: Mapped[str]
    version: Mapped[int] = mapped_column(default=1)
    active: Mapped[bool] = mapped_column(default=True)
    personal_max_score: Mapped[float] = mapped_column(default=100.0)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class rubric_criteria(base):
    __tablename__ = "rubric_criteria"

    criterion_id: Mapped[RubricCriterionID] = mapped_column(primary_key=True)
    template_id: Mapped[RubricTemplateID] = mapped_column(
        ForeignKey("rubric_templates.template_id", ondelete="CASCADE")
    )
    label: Mapped[str]
    weight: Mapped[float]
    description: Mapped[str | None] = mapped_column(default=None)
    min_score: Mapped[float] = mapped_column(default=0.0)
    max_score: Mapped[float] = mapped_column(default=10.0)


# Defense schedules


class defense_schedules(base):
    __tablename__ = "defense_schedules"

    schedule_id: Mapped[ScheduleID] = mapped_column(primary_key=True)
    group_id: Mapped[GroupID] = mapped_column(ForeignKey("thesis_groups.group_id"))
    scheduled_at: Mapped[datetime.datetime]
    rubric_template_id: Mapped[RubricTemplateID | None] = mapped_column(
        ForeignKey("rubric_templates.template_id"), default=None
    )
    room: Mapped[str | None] = mapped_column(default=None)
    status: Mapped[str] = mapped_column(default="scheduled")
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class schedule_panelists(base):
    __tablename__ = "schedule_panelists"

    schedule_id: Mapped[ScheduleID] = mapped_column(
        ForeignKey("defense_schedules.schedule_id", ondelete="CASCADE"), primary_key=True
    )
    panelist_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"), primary_key=True)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())


# Evaluations


class evaluations(base):
    __tablename__ = "evaluations"
    __table_args__ = (UniqueConstraint("schedule_id", "evaluator_id", name="uq_evaluations_schedule_evaluator"),)

    evaluation_id: Mapped[EvaluationID] = mapped_column(primary_key=True)
    schedule_id: Mapped[ScheduleID] = mapped_column(ForeignKey("defense_schedules.schedule_id"))
    evaluator_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    status: Mapped[str] = mapped_column(default="pending")
    submitted_at: Mapped[datetime.datetime | None] = mapped_column(default=None)
    locked_at: Mapped[datetime.datetime | None] = mapped_column(default=None)
    extras: Mapped[dict[str, t.Any]] = mapped_column(default_factory=dict)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


class evaluation_scores(base):
    __tablename__ = "evaluation_scores"

    evaluation_id: Mapped[EvaluationID] = mapped_column(
        ForeignKey("evaluations.evaluation_id", ondelete="CASCADE"), primary_key=True
    )
    # not a foreign key: criteria may be removed from a template after scoring
    criterion_id: Mapped[RubricCriterionID] = mapped_column(primary_key=True)
    score: Mapped[float]
    comment: Mapped[str | None] = mapped_column(default=None)


class student_evaluations(base):
    __tablename__ = "student_evaluations"
    __table_args__ = (UniqueConstraint("schedule_id", "student_id", name="uq_student_evaluations_schedule_student"),)

    student_evaluation_id: Mapped[StudentEvaluationID] = mapped_column(primary_key=True)
    schedule_id: Mapped[ScheduleID] = mapped_column(ForeignKey("defense_schedules.schedule_id"))
    student_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    status: Mapped[str] = mapped_column(default="pending")
    submitted_at: Mapped[datetime.datetime | None] = mapped_column(default=None)
    locked_at: Mapped[datetime.datetime | None] = mapped_column(default=None)
    answers: Mapped[dict[str, t.Any]] = mapped_column(default_factory=dict)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
    update_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now(), onupdate=func.now())


# Audit


class audit_logs(base):
    __tablename__ = "audit_logs"

    audit_id: Mapped[AuditLogID] = mapped_column(primary_key=True)
    actor_id: Mapped[UserID] = mapped_column(ForeignKey("users.user_id"))
    action: Mapped[str]
    entity: Mapped[str]
    entity_id: Mapped[str]
    details: Mapped[dict[str, t.Any]] = mapped_column(default_factory=dict)
    create_time: Mapped[datetime.datetime] = mapped_column(default=None, server_default=func.now())
