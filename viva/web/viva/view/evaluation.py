"""View models for evaluation lifecycle routes."""

from __future__ import annotations

import datetime
import typing as t

import annotated_types as ant
import pydantic as p

from viva.model import Evaluation, EvaluationID, EvaluationScore, EvaluationStatus, EvaluationWithScores, \
    RubricCriterionID, ScheduleID, UserID


class AssignRequest(p.BaseModel):
    schedule_id: ScheduleID
    evaluator_id: UserID


class ScoreRequest(p.BaseModel):
    criterion_id: RubricCriterionID
    score: float
    comment: str | None = None


class ScoresRequest(p.BaseModel):
    """Scores to write; criteria not listed keep their current score."""

    scores: t.Annotated[list[ScoreRequest], ant.MinLen(1)]


class ExtrasRequest(p.BaseModel):
    """Replacement extras payload (group, system and per-member scores and comments)."""

    extras: dict[str, t.Any]


class UnlockRequest(p.BaseModel):
    reason: t.Annotated[str, ant.MinLen(1)]


class ScoreResponse(p.BaseModel):
    criterion_id: RubricCriterionID
    score: float
    comment: str | None = None

    @classmethod
    def from_model(cls, score: EvaluationScore) -> ScoreResponse:
        return cls(criterion_id=score.criterion_id, score=score.score, comment=score.comment)


class EvaluationResponse(p.BaseModel):
    evaluation_id: EvaluationID
    schedule_id: ScheduleID
    evaluator_id: UserID
    status: EvaluationStatus
    submitted_at: datetime.datetime | None = None
    locked_at: datetime.datetime | None = None
    extras: dict[str, t.Any] = {}
    scores: list[ScoreResponse] | None = None
    create_time: datetime.datetime
    update_time: datetime.datetime

    @classmethod
    def from_model(cls, evaluation: Evaluation) -> EvaluationResponse:
        scores: list[ScoreResponse] | None = None
        if isinstance(evaluation, EvaluationWithScores):
            scores = [ScoreResponse.from_model(s) for s in evaluation.scores]
        return cls(
            evaluation_id=evaluation.evaluation_id,
            schedule_id=evaluation.schedule_id,
            evaluator_id=evaluation.evaluator_id,
            status=evaluation.status,
            submitted_at=evaluation.submitted_at,
            locked_at=evaluation.locked_at,
            extras=evaluation.extras,
            scores=scores,
            create_time=evaluation.create_time,
            update_time=evaluation.update_time,
        )


class AssignResponse(p.BaseModel):
    created: bool
    evaluation: EvaluationResponse
