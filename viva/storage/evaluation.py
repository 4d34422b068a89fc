from __future__ import annotations

import datetime
import typing as t

import sqlalchemy as sqla

from viva.core import di
from viva.lib.sentinel import NotSet
from viva.model import Evaluation, EvaluationID, EvaluationScore, EvaluationStatus, EvaluationWithScores, \
    RubricCriterionID, ScheduleID, UserID

from . import Session
from .table import evaluation_scores, evaluations


@t.overload
def get(
    key: EvaluationID, *, with_scores: t.Literal[False] = ..., session: Session = ...
) -> Evaluation | None: ...


@t.overload
def get(key: EvaluationID, *, with_scores: t.Literal[True], session: Session = ...) -> EvaluationWithScores | None: ...


def get(
    key: EvaluationID,
    *,
    with_scores: bool = False,
    session: Session = di.Provide["storage.persistent.session"],
) -> Evaluation | EvaluationWithScores | None:
    stmt = sqla.select(evaluations.__table__).where(evaluations.evaluation_id == key)
    row = session.execute(stmt).mappings().one_or_none()
    if row is None:
        return None
    if with_scores:
        scores = find_scores(evaluation_ids=[key], session=session)
        return EvaluationWithScores(**row, scores=list(scores))
    return Evaluation(**row)


def get_assigned(
    schedule_id: ScheduleID,
    evaluator_id: UserID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Evaluation | None:
    """Get the evaluation an evaluator holds for a schedule, if any."""
    stmt = sqla.select(evaluations.__table__).where(
        evaluations.schedule_id == schedule_id, evaluations.evaluator_id == evaluator_id
    )
    row = session.execute(stmt).mappings().one_or_none()
    return Evaluation(**row) if row else None


def find(
    *,
    schedule_ids: t.Collection[ScheduleID] | None = None,
    evaluator_id: UserID | None = None,
    statuses: t.Collection[EvaluationStatus] | None = None,
    with_scores: bool = False,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[EvaluationWithScores, ...]:
    """Find evaluations in creation order.

    Rows always come back as EvaluationWithScores; scores are only loaded
    when `with_scores` is set.
    """
    stmt = sqla.select(evaluations.__table__).order_by(evaluations.create_time, evaluations.evaluation_id)
    if schedule_ids is not None:
        stmt = stmt.where(evaluations.schedule_id.in_(list(schedule_ids)))
    if evaluator_id is not None:
        stmt = stmt.where(evaluations.evaluator_id == evaluator_id)
    if statuses is not None:
        stmt = stmt.where(evaluations.status.in_([s.value for s in statuses]))
    rows = session.execute(stmt).mappings().all()

    by_evaluation: dict[EvaluationID, list[EvaluationScore]] = {}
    if with_scores and rows:
        for score in find_scores(evaluation_ids=[row["evaluation_id"] for row in rows], session=session):
            by_evaluation.setdefault(score.evaluation_id, []).append(score)
    return tuple(EvaluationWithScores(**row, scores=by_evaluation.get(row["evaluation_id"], [])) for row in rows)


def insert(
    schedule_id: ScheduleID,
    evaluator_id: UserID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> Evaluation:
    """Insert a pending evaluation.

    Raises:
        sqlalchemy.exc.IntegrityError: if the evaluator already holds one for this schedule
    """
    evaluation_id = EvaluationID()
    stmt = sqla.insert(evaluations).values(
        evaluation_id=evaluation_id,
        schedule_id=schedule_id,
        evaluator_id=evaluator_id,
        status=EvaluationStatus.Pending.value,
        extras={},
    )
    session.execute(stmt)
    session.flush()
    evaluation = get(evaluation_id, session=session)
    assert evaluation is not None
    return evaluation


def update(
    key: EvaluationID,
    *,
    status: EvaluationStatus | NotSet = NotSet(),
    submitted_at: datetime.datetime | None | NotSet = NotSet(),
    locked_at: datetime.datetime | None | NotSet = NotSet(),
    extras: dict[str, t.Any] | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Update an evaluation.

    Uses NotSet sentinel for parameters where None may be a valid value.
    Call get() after if you need the updated entity.

    Raises:
        KeyError: If key does not correspond to an evaluation
    """
    values: dict[str, t.Any] = {}
    if not isinstance(status, NotSet):
        values["status"] = status.value
    if not isinstance(submitted_at, NotSet):
        values["submitted_at"] = submitted_at
    if not isinstance(locked_at, NotSet):
        values["locked_at"] = locked_at
    if not isinstance(extras, NotSet):
        values["extras"] = extras

    stmt = (
        sqla
        .update(evaluations)
        .where(evaluations.evaluation_id == key)
        .values(**(values or {"evaluation_id": key}))
    )
    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"Evaluation {key} not found")
    session.flush()


def delete(key: EvaluationID, session: Session = di.Provide["storage.persistent.session"]) -> bool:
    """Delete an evaluation along with its scores.

    Returns:
        True if an evaluation was deleted, False if not found
    """
    session.execute(sqla.delete(evaluation_scores).where(evaluation_scores.evaluation_id == key))
    result = session.execute(sqla.delete(evaluations).where(evaluations.evaluation_id == key))
    session.flush()
    return bool(result.rowcount)  # pyright: ignore[reportUnknownArgumentType, reportAttributeAccessIssue]


def find_scores(
    *,
    evaluation_ids: t.Collection[EvaluationID],
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[EvaluationScore, ...]:
    stmt = (
        sqla
        .select(evaluation_scores.__table__)
        .where(evaluation_scores.evaluation_id.in_(list(evaluation_ids)))
        .order_by(evaluation_scores.evaluation_id, evaluation_scores.criterion_id)
    )
    rows = session.execute(stmt).mappings().all()
    return tuple(EvaluationScore(**row) for row in rows)


def upsert_score(
    evaluation_id: EvaluationID,
    criterion_id: RubricCriterionID,
    score: float,
    comment: str | None | NotSet = NotSet(),
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> EvaluationScore:
    """Insert or replace the score for one criterion; an unset comment keeps the stored one"""
    where = (evaluation_scores.evaluation_id == evaluation_id, evaluation_scores.criterion_id == criterion_id)
    existing = session.execute(sqla.select(evaluation_scores.criterion_id).where(*where)).one_or_none()

    values: dict[str, t.Any] = {"score": score}
    if not isinstance(comment, NotSet):
        values["comment"] = comment

    if existing is None:
        stmt: sqla.Executable = sqla.insert(evaluation_scores).values(
            evaluation_id=evaluation_id, criterion_id=criterion_id, **values
        )
    else:
        stmt = sqla.update(evaluation_scores).where(*where).values(**values)
    session.execute(stmt)
    session.flush()

    row = session.execute(sqla.select(evaluation_scores.__table__).where(*where)).mappings().one()
    return EvaluationScore(**row)
