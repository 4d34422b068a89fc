__all__ = [
    # Base
    "BaseModel",
    "WithCtime",
    "WithMtime",
    "WithTimestamps",
    # Enums
    "DeploymentEnvironment",
    # ID Types
    "UserID",
    "GroupID",
    "ScheduleID",
    "RubricTemplateID",
    "RubricCriterionID",
    "EvaluationID",
    "StudentEvaluationID",
    "AuditLogID",
    # Users
    "User",
    "UserRole",
    # Groups
    "ThesisGroup",
    "GroupMember",
    "GroupWithMembers",
    # Schedules
    "DefenseSchedule",
    "SchedulePanelist",
    "ScheduleStatus",
    # Rubrics
    "RubricTemplate",
    "RubricTemplateWithCriteria",
    "RubricCriterion",
    # Evaluations
    "Evaluation",
    "EvaluationScore",
    "EvaluationStatus",
    "EvaluationWithScores",
    "StudentEvaluation",
    # Audit
    "AuditAction",
    "AuditLog",
    # Aggregates
    "EvaluationBreakdown",
    "IntegrityWarning",
    "IntegrityWarningKind",
    "MemberBreakdown",
    "NormalizedScore",
    "ScheduleAggregate",
    # Rankings
    "GroupRanking",
    "Ranked",
    "RankingRow",
    "RankingTarget",
    "RankItem",
    "StudentRanking",
]

from .aggregate import EvaluationBreakdown, IntegrityWarning, IntegrityWarningKind, MemberBreakdown, NormalizedScore, \
    ScheduleAggregate
from .audit import AuditAction, AuditLog
from .base import BaseModel, WithCtime, WithMtime, WithTimestamps
from .enum import DeploymentEnvironment
from .evaluation import Evaluation, EvaluationScore, EvaluationStatus, EvaluationWithScores, StudentEvaluation
from .group import GroupMember, GroupWithMembers, ThesisGroup
from .id import AuditLogID, EvaluationID, GroupID, RubricCriterionID, RubricTemplateID, ScheduleID, \
    StudentEvaluationID, UserID
from .ranking import GroupRanking, Ranked, RankingRow, RankingTarget, RankItem, StudentRanking
from .rubric import RubricCriterion, RubricTemplate, RubricTemplateWithCriteria
from .schedule import DefenseSchedule, SchedulePanelist, ScheduleStatus
from .user import User, UserRole
