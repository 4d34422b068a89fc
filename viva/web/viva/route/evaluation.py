"""Evaluation lifecycle routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from viva.auth import AuthContext, get_current_user, require_admin, require_staff
from viva.core import di
from viva.evaluation import lifecycle
from viva.evaluation.errors import NotFoundError
from viva.model import Evaluation, EvaluationID, UserRole
from viva.storage import evaluation as evaluation_storage

from ..view.evaluation import AssignRequest, AssignResponse, EvaluationResponse, ExtrasRequest, ScoresRequest, \
    UnlockRequest

router = APIRouter(prefix="/api/evaluations", tags=["evaluations"])


def _authorize_evaluator(evaluation_id: EvaluationID, auth: AuthContext, session: Session) -> Evaluation:
    """Staff may act on any evaluation; panelists only on their own."""
    evaluation = evaluation_storage.get(evaluation_id, session=session)
    if evaluation is None:
        raise NotFoundError("evaluation", evaluation_id)
    if not auth.is_staff and evaluation.evaluator_id != auth.user.user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Evaluation is assigned to another panelist",
        )
    return evaluation


@router.post("/assign", operation_id="assign_evaluation", status_code=status.HTTP_201_CREATED)
@di.inject
def assign_evaluation(
    request: AssignRequest,
    response: Response,
    auth: AuthContext = Depends(require_staff),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> AssignResponse:
    """Assign a panelist to a defense.

    Returns 201 when the evaluation was created and 200 when the panelist was
    already assigned.
    """
    with session.begin():
        evaluation, created = lifecycle.assign(request.schedule_id, request.evaluator_id, session=session)
        if not created:
            response.status_code = status.HTTP_200_OK
        return AssignResponse(created=created, evaluation=EvaluationResponse.from_model(evaluation))


@router.get("/{evaluation_id}", operation_id="get_evaluation")
@di.inject
def get_evaluation(
    evaluation_id: EvaluationID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> EvaluationResponse:
    with session.begin():
        _authorize_evaluator(evaluation_id, auth, session)
        evaluation = evaluation_storage.get(evaluation_id, with_scores=True, session=session)
        assert evaluation is not None
        return EvaluationResponse.from_model(evaluation)


@router.put("/{evaluation_id}/scores", operation_id="record_scores")
@di.inject
def record_scores(
    evaluation_id: EvaluationID,
    request: ScoresRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> EvaluationResponse:
    with session.begin():
        _authorize_evaluator(evaluation_id, auth, session)
        evaluation = lifecycle.record_scores(
            evaluation_id,
            {s.criterion_id: s.score for s in request.scores},
            {s.criterion_id: s.comment for s in request.scores if s.comment is not None},
            session=session,
        )
        return EvaluationResponse.from_model(evaluation)


@router.put("/{evaluation_id}/extras", operation_id="update_extras")
@di.inject
def update_extras(
    evaluation_id: EvaluationID,
    request: ExtrasRequest,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> EvaluationResponse:
    with session.begin():
        _authorize_evaluator(evaluation_id, auth, session)
        evaluation = lifecycle.update_extras(evaluation_id, request.extras, session=session)
        return EvaluationResponse.from_model(evaluation)


@router.post("/{evaluation_id}/submit", operation_id="submit_evaluation")
@di.inject
def submit_evaluation(
    evaluation_id: EvaluationID,
    auth: AuthContext = Depends(get_current_user),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> EvaluationResponse:
    """Submit an evaluation; every rubric criterion must have a score."""
    with session.begin():
        _authorize_evaluator(evaluation_id, auth, session)
        return EvaluationResponse.from_model(lifecycle.submit(evaluation_id, session=session))


@router.post("/{evaluation_id}/lock", operation_id="lock_evaluation")
@di.inject
def lock_evaluation(
    evaluation_id: EvaluationID,
    auth: AuthContext = Depends(require_staff),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> EvaluationResponse:
    with session.begin():
        return EvaluationResponse.from_model(lifecycle.lock(evaluation_id, session=session))


@router.post("/{evaluation_id}/unlock", operation_id="unlock_evaluation")
@di.inject
def unlock_evaluation(
    evaluation_id: EvaluationID,
    request: UnlockRequest,
    auth: AuthContext = Depends(require_admin),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> EvaluationResponse:
    """Return a locked evaluation to submitted. Admin only; audited."""
    with session.begin():
        evaluation = lifecycle.admin_unlock(evaluation_id, auth.user.user_id, request.reason, session=session)
        return EvaluationResponse.from_model(evaluation)


@router.delete("/{evaluation_id}", operation_id="delete_evaluation", status_code=status.HTTP_204_NO_CONTENT)
@di.inject
def delete_evaluation(
    evaluation_id: EvaluationID,
    force: bool = Query(False),
    reason: str | None = Query(None),
    auth: AuthContext = Depends(require_staff),
    session: Session = Depends(di.Manage["storage.persistent.session"]),
) -> None:
    """Remove an evaluation. Locked evaluations need `force`, which is admin only and audited."""
    if force and auth.role is not UserRole.Admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forced deletion requires the admin role",
        )
    with session.begin():
        lifecycle.unassign(evaluation_id, auth.user.user_id, force=force, reason=reason, session=session)
