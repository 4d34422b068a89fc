import datetime
import enum
import typing as t

from .base import BaseModel, WithTimestamps
from .id import EvaluationID, RubricCriterionID, ScheduleID, StudentEvaluationID, UserID


class EvaluationStatus(enum.Enum):
    Pending = "pending"
    Submitted = "submitted"
    Locked = "locked"

    @property
    def counts(self) -> bool:
        """Whether an evaluation in this state contributes to aggregates."""
        return self in (EvaluationStatus.Submitted, EvaluationStatus.Locked)


class EvaluationScore(BaseModel):
    evaluation_id: EvaluationID
    criterion_id: RubricCriterionID
    score: float
    comment: str | None = None


class Evaluation(WithTimestamps):
    evaluation_id: EvaluationID
    schedule_id: ScheduleID
    evaluator_id: UserID
    status: EvaluationStatus = EvaluationStatus.Pending

    submitted_at: datetime.datetime | None = None
    locked_at: datetime.datetime | None = None
    extras: dict[str, t.Any] = {}


class EvaluationWithScores(Evaluation):
    scores: list[EvaluationScore] = []

    def score_map(self) -> dict[RubricCriterionID, float]:
        return {s.criterion_id: s.score for s in self.scores}


class StudentEvaluation(WithTimestamps):
    student_evaluation_id: StudentEvaluationID
    schedule_id: ScheduleID
    student_id: UserID
    status: EvaluationStatus = EvaluationStatus.Pending

    submitted_at: datetime.datetime | None = None
    locked_at: datetime.datetime | None = None
    answers: dict[str, t.Any] = {}
