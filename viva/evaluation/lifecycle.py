"""Evaluation state machine: pending -> submitted -> locked.

Every operation runs inside the caller's transaction and either completes
or raises, leaving the transaction to roll back. Locked evaluations reject
all writes; the only way back is `admin_unlock`, which is always audited.
"""

from __future__ import annotations

import logging
import typing as t

from sqlalchemy.exc import IntegrityError

from viva.core import di, TimestampProvider
from viva.lib.sentinel import NotSet
from viva.model import AuditAction, DefenseSchedule, Evaluation, EvaluationID, EvaluationStatus, EvaluationWithScores, \
    RubricCriterion, RubricCriterionID, ScheduleID, StudentEvaluation, StudentEvaluationID, UserID
from viva.storage import audit as audit_storage
from viva.storage import evaluation as evaluation_storage
from viva.storage import rubric as rubric_storage
from viva.storage import schedule as schedule_storage
from viva.storage import Session
from viva.storage import student_evaluation as student_evaluation_storage
from viva.storage import user as user_storage

from .errors import MissingCriteriaError, NotFoundError, StateConflictError
from .rubric import validate_scores

logger = logging.getLogger(__name__)


def assign(
    schedule_id: ScheduleID,
    evaluator_id: UserID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[Evaluation, bool]:
    """Create the evaluator's pending evaluation for a schedule, or return the
    existing one. The boolean is True only when a row was created.

    The insert runs in a savepoint; a concurrent assignment that wins the
    race surfaces as a uniqueness violation and its row is returned instead.
    """
    _load_schedule(schedule_id, session=session)
    if user_storage.get(evaluator_id, session=session) is None:
        raise NotFoundError("user", evaluator_id)

    try:
        with session.begin_nested():
            evaluation = evaluation_storage.insert(schedule_id, evaluator_id, session=session)
    except IntegrityError:
        existing = evaluation_storage.get_assigned(schedule_id, evaluator_id, session=session)
        if existing is None:
            raise
        return existing, False

    logger.info(
        "evaluation assigned",
        extra={
            "evaluation_id": evaluation.evaluation_id,
            "schedule_id": schedule_id,
            "evaluator_id": evaluator_id,
        },
    )
    return evaluation, True


def bulk_assign(schedule_id: ScheduleID, *, session: Session = di.Provide["storage.persistent.session"]) -> int:
    """Assign every panelist of the schedule; returns how many evaluations were created"""
    _load_schedule(schedule_id, session=session)
    created = 0
    for panelist in schedule_storage.find_panelists(schedule_ids=[schedule_id], session=session):
        _, was_created = assign(schedule_id, panelist.panelist_id, session=session)
        created += int(was_created)
    return created


def record_scores(
    evaluation_id: EvaluationID,
    scores: t.Mapping[RubricCriterionID, float],
    comments: t.Mapping[RubricCriterionID, str | None] | None = None,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> EvaluationWithScores:
    """Write criterion scores for an evaluation that is not locked.

    Raises:
        NotFoundError: if the evaluation, or a criterion within the schedule's rubric, does not exist
        ScoreRangeError: if a score is outside its criterion's range
        StateConflictError: if the evaluation is locked
    """
    evaluation = _load(evaluation_id, session=session)
    _ensure_writable(evaluation)

    criteria = _criteria_for(_load_schedule(evaluation.schedule_id, session=session), session=session)
    known = {c.criterion_id for c in criteria}
    for criterion_id in scores:
        if criterion_id not in known:
            raise NotFoundError("criterion", criterion_id)
    validate_scores(scores, criteria)

    comments = comments or {}
    for criterion_id, score in scores.items():
        evaluation_storage.upsert_score(
            evaluation_id, criterion_id, score, comments.get(criterion_id, NotSet()), session=session
        )

    logger.debug(
        "scores recorded",
        extra={
            "evaluation_id": evaluation_id,
            "criteria": sorted(scores),
        },
    )
    return _load(evaluation_id, with_scores=True, session=session)


def update_extras(
    evaluation_id: EvaluationID,
    extras: dict[str, t.Any],
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Evaluation:
    """Replace the free-form extras payload of an evaluation that is not locked."""
    evaluation = _load(evaluation_id, session=session)
    _ensure_writable(evaluation)
    evaluation_storage.update(evaluation_id, extras=extras, session=session)
    return _load(evaluation_id, session=session)


def submit(
    evaluation_id: EvaluationID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
    lock_on_submit: bool = di.Provide["config.evaluation.lock_on_submit"],
) -> Evaluation:
    """Finalize a pending evaluation. Every rubric criterion must be scored.

    When lock-on-submit is enabled the evaluation is locked in the same step.
    """
    evaluation = _load(evaluation_id, with_scores=True, session=session)
    if evaluation.status is not EvaluationStatus.Pending:
        raise StateConflictError("only a pending evaluation can be submitted", evaluation.status)

    criteria = _criteria_for(_load_schedule(evaluation.schedule_id, session=session), session=session)
    scored = {s.criterion_id for s in evaluation.scores}
    if missing := {c.criterion_id for c in criteria} - scored:
        raise MissingCriteriaError(missing)

    now = utcnow()
    evaluation_storage.update(
        evaluation_id, status=EvaluationStatus.Submitted, submitted_at=now, session=session
    )
    _log_transition(evaluation_id, EvaluationStatus.Pending, EvaluationStatus.Submitted)
    if lock_on_submit:
        evaluation_storage.update(evaluation_id, status=EvaluationStatus.Locked, locked_at=now, session=session)
        _log_transition(evaluation_id, EvaluationStatus.Submitted, EvaluationStatus.Locked)
    return _load(evaluation_id, session=session)


def lock(
    evaluation_id: EvaluationID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> Evaluation:
    evaluation = _load(evaluation_id, session=session)
    if evaluation.status is not EvaluationStatus.Submitted:
        raise StateConflictError("only a submitted evaluation can be locked", evaluation.status)

    evaluation_storage.update(evaluation_id, status=EvaluationStatus.Locked, locked_at=utcnow(), session=session)
    _log_transition(evaluation_id, evaluation.status, EvaluationStatus.Locked)
    return _load(evaluation_id, session=session)


def admin_unlock(
    evaluation_id: EvaluationID,
    actor_id: UserID,
    reason: str,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Evaluation:
    """Return a locked evaluation to submitted. The audit record is written in
    the same transaction, so an unlock without its audit trail cannot commit."""
    evaluation = _load(evaluation_id, with_scores=True, session=session)
    if evaluation.status is not EvaluationStatus.Locked:
        raise StateConflictError("only a locked evaluation can be unlocked", evaluation.status)

    evaluation_storage.update(evaluation_id, status=EvaluationStatus.Submitted, locked_at=None, session=session)
    audit_storage.create(
        {
            "actor_id": actor_id,
            "action": AuditAction.EvaluationUnlock,
            "entity": "evaluation",
            "entity_id": evaluation_id,
            "details": {
                "reason": reason,
                "prior": evaluation.model_dump(mode="json"),
            },
        },
        session=session,
    )
    _log_transition(evaluation_id, evaluation.status, EvaluationStatus.Submitted, actor_id=actor_id)
    return _load(evaluation_id, session=session)


def unassign(
    evaluation_id: EvaluationID,
    actor_id: UserID,
    *,
    force: bool = False,
    reason: str | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Delete an evaluation and its scores.

    A locked evaluation is only deleted with `force`. A forced deletion first
    records the actor, reason and the full prior state; if that record cannot
    be written nothing is deleted.
    """
    evaluation = _load(evaluation_id, with_scores=True, session=session)
    locked = evaluation.status is EvaluationStatus.Locked or evaluation.locked_at is not None
    if locked and not force:
        raise StateConflictError("a locked evaluation can only be removed by a forced deletion", evaluation.status)

    if force:
        audit_storage.create(
            {
                "actor_id": actor_id,
                "action": AuditAction.EvaluationForceDelete,
                "entity": "evaluation",
                "entity_id": evaluation_id,
                "details": {
                    "reason": reason,
                    "prior": evaluation.model_dump(mode="json"),
                },
            },
            session=session,
        )

    evaluation_storage.delete(evaluation_id, session=session)
    logger.info(
        "evaluation removed",
        extra={
            "evaluation_id": evaluation_id,
            "schedule_id": evaluation.schedule_id,
            "actor_id": actor_id,
            "forced": force,
        },
    )


def assign_student_evaluation(
    schedule_id: ScheduleID,
    student_id: UserID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[StudentEvaluation, bool]:
    """Create a student's pending feedback form for a schedule, or return the existing one."""
    _load_schedule(schedule_id, session=session)
    if user_storage.get(student_id, session=session) is None:
        raise NotFoundError("user", student_id)
    try:
        with session.begin_nested():
            form = student_evaluation_storage.insert(schedule_id, student_id, session=session)
    except IntegrityError:
        existing = student_evaluation_storage.get_assigned(schedule_id, student_id, session=session)
        if existing is None:
            raise
        return existing, False
    return form, True


def submit_student_evaluation(
    key: StudentEvaluationID,
    answers: dict[str, t.Any],
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> StudentEvaluation:
    form = _load_student_evaluation(key, session=session)
    if form.status is not EvaluationStatus.Pending:
        raise StateConflictError("only a pending feedback form can be submitted", form.status)
    student_evaluation_storage.update(
        key, status=EvaluationStatus.Submitted, submitted_at=utcnow(), answers=answers, session=session
    )
    return _load_student_evaluation(key, session=session)


def lock_student_evaluation(
    key: StudentEvaluationID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
    utcnow: TimestampProvider = di.Provide["utcnow"],
) -> StudentEvaluation:
    form = _load_student_evaluation(key, session=session)
    if form.status is not EvaluationStatus.Submitted:
        raise StateConflictError("only a submitted feedback form can be locked", form.status)
    student_evaluation_storage.update(key, status=EvaluationStatus.Locked, locked_at=utcnow(), session=session)
    return _load_student_evaluation(key, session=session)


@t.overload
def _load(
    evaluation_id: EvaluationID, *, with_scores: t.Literal[False] = ..., session: Session
) -> Evaluation: ...


@t.overload
def _load(evaluation_id: EvaluationID, *, with_scores: t.Literal[True], session: Session) -> EvaluationWithScores: ...


def _load(
    evaluation_id: EvaluationID, *, with_scores: bool = False, session: Session
) -> Evaluation | EvaluationWithScores:
    evaluation = evaluation_storage.get(evaluation_id, with_scores=with_scores, session=session)
    if evaluation is None:
        raise NotFoundError("evaluation", evaluation_id)
    return evaluation


def _load_schedule(schedule_id: ScheduleID, *, session: Session) -> DefenseSchedule:
    schedule = schedule_storage.get(schedule_id, session=session)
    if schedule is None:
        raise NotFoundError("schedule", schedule_id)
    return schedule


def _load_student_evaluation(key: StudentEvaluationID, *, session: Session) -> StudentEvaluation:
    form = student_evaluation_storage.get(key, session=session)
    if form is None:
        raise NotFoundError("student evaluation", key)
    return form


def _criteria_for(schedule: DefenseSchedule, *, session: Session) -> tuple[RubricCriterion, ...]:
    if schedule.rubric_template_id is None:
        return ()
    return rubric_storage.find_criteria(template_ids=[schedule.rubric_template_id], session=session)


def _ensure_writable(evaluation: Evaluation) -> None:
    if evaluation.status is EvaluationStatus.Locked:
        raise StateConflictError("evaluation is locked", evaluation.status)


def _log_transition(
    evaluation_id: EvaluationID, from_: EvaluationStatus, to: EvaluationStatus, actor_id: UserID | None = None
) -> None:
    logger.info(
        "evaluation state changed",
        extra={
            "evaluation_id": evaluation_id,
            "from_state": from_.value,
            "to_state": to.value,
            "actor_id": actor_id,
        },
    )
