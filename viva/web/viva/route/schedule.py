"""Defense schedule routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from viva.auth import AuthContext, get_current_user, require_staff
from viva.core import di
from viva.evaluation import leaderboard, lifecycle
from viva.model import ScheduleID
from viva.storage import student_evaluation as student_evaluation_storage

from ..view.schedule import AssignPanelResponse, FeedbackFormStatus, ScheduleAggregateResponse

router = APIRouter(prefix="/api/schedules", tags=["schedules"])


@router.get("/{schedule_id}/aggregate", operation_id="get_schedule_aggregate")
@di.inject
def get_schedule_aggregate(
    schedule_id: ScheduleID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> ScheduleAggregateResponse:
    """Composite scores for one defense, with the state of each student's feedback form."""
    with session.begin():
        aggregate = leaderboard.schedule_aggregate(schedule_id, session=session)
        forms = student_evaluation_storage.find(schedule_id=schedule_id, session=session)
        return ScheduleAggregateResponse(
            aggregate=aggregate,
            feedback_forms=[
                FeedbackFormStatus(
                    student_evaluation_id=f.student_evaluation_id,
                    student_id=f.student_id,
                    status=f.status,
                    submitted_at=f.submitted_at,
                )
                for f in forms
            ],
        )


@router.post("/{schedule_id}/assign-panel", operation_id="assign_panel")
@di.inject
def assign_panel(
    schedule_id: ScheduleID,
    auth: AuthContext = Depends(require_staff),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> AssignPanelResponse:
    """Create a pending evaluation for every panelist of the schedule that lacks one."""
    with session.begin():
        return AssignPanelResponse(created=lifecycle.bulk_assign(schedule_id, session=session))
