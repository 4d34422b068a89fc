import enum

from .base import BaseModel
from .evaluation import EvaluationStatus
from .id import EvaluationID, GroupID, RubricCriterionID, ScheduleID, UserID


class NormalizedScore(BaseModel):
    group_score: float | None = None
    system_score: float | None = None
    personal_score: float | None = None
    group_comment: str | None = None
    system_comment: str | None = None
    personal_comment: str | None = None


class IntegrityWarningKind(enum.Enum):
    OrphanedScore = "orphaned_score"
    RubricWeights = "rubric_weights"
    ScoreOutOfRange = "score_out_of_range"
    MissingRubric = "missing_rubric"


class IntegrityWarning(BaseModel):
    kind: IntegrityWarningKind
    message: str
    schedule_id: ScheduleID | None = None
    evaluation_id: EvaluationID | None = None
    criterion_id: RubricCriterionID | None = None


class MemberBreakdown(BaseModel):
    student_id: UserID
    personal_score: float | None = None
    personal_comment: str | None = None


class EvaluationBreakdown(BaseModel):
    evaluation_id: EvaluationID
    evaluator_id: UserID
    status: EvaluationStatus
    normalized: NormalizedScore
    percentage: float | None = None
    members: list[MemberBreakdown] = []


class ScheduleAggregate(BaseModel):
    schedule_id: ScheduleID
    group_id: GroupID | None = None

    group_score: float | None = None
    system_score: float | None = None
    group_percentage: float | None = None
    student_personal_scores: dict[UserID, float | None] = {}
    student_percentages: dict[UserID, float | None] = {}
    submitted_evaluations_count: int = 0

    evaluations: list[EvaluationBreakdown] = []
    partial: bool = False
    warnings: list[IntegrityWarning] = []
