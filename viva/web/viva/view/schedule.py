"""View models for schedule routes."""

from __future__ import annotations

import datetime

import pydantic as p

from viva.model import EvaluationStatus, ScheduleAggregate, StudentEvaluationID, UserID


class FeedbackFormStatus(p.BaseModel):
    """Where a student's own feedback form for the defense stands"""

    student_evaluation_id: StudentEvaluationID
    student_id: UserID
    status: EvaluationStatus
    submitted_at: datetime.datetime | None = None


class ScheduleAggregateResponse(p.BaseModel):
    aggregate: ScheduleAggregate
    feedback_forms: list[FeedbackFormStatus] = []


class AssignPanelResponse(p.BaseModel):
    created: int
