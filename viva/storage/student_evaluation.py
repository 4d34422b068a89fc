from __future__ import annotations

import datetime
import typing as t

import sqlalchemy as sqla

from viva.core import di
from viva.lib.sentinel import NotSet
from viva.model import EvaluationStatus, ScheduleID, StudentEvaluation, StudentEvaluationID, UserID

from . import Session
from .table import student_evaluations


def get(
    key: StudentEvaluationID, session: Session = di.Provide["storage.persistent.session"]
) -> StudentEvaluation | None:
    stmt = sqla.select(student_evaluations.__table__).where(student_evaluations.student_evaluation_id == key)
    row = session.execute(stmt).mappings().one_or_none()
    return StudentEvaluation(**row) if row else None


def get_assigned(
    schedule_id: ScheduleID,
    student_id: UserID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> StudentEvaluation | None:
    stmt = sqla.select(student_evaluations.__table__).where(
        student_evaluations.schedule_id == schedule_id, student_evaluations.student_id == student_id
    )
    row = session.execute(stmt).mappings().one_or_none()
    return StudentEvaluation(**row) if row else None


def find(
    *,
    schedule_id: ScheduleID | None = None,
    student_id: UserID | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[StudentEvaluation, ...]:
    stmt = sqla.select(student_evaluations.__table__).order_by(
        student_evaluations.create_time, student_evaluations.student_evaluation_id
    )
    if schedule_id is not None:
        stmt = stmt.where(student_evaluations.schedule_id == schedule_id)
    if student_id is not None:
        stmt = stmt.where(student_evaluations.student_id == student_id)
    rows = session.execute(stmt).mappings().all()
    return tuple(StudentEvaluation(**row) for row in rows)


def insert(
    schedule_id: ScheduleID,
    student_id: UserID,
    *,
    session: Session = di.Provide["storage.persistent.session"],
) -> StudentEvaluation:
    """Insert a pending feedback form.

    Raises:
        sqlalchemy.exc.IntegrityError: if the student already has one for this schedule
    """
    key = StudentEvaluationID()
    stmt = sqla.insert(student_evaluations).values(
        student_evaluation_id=key,
        schedule_id=schedule_id,
        student_id=student_id,
        status=EvaluationStatus.Pending.value,
        answers={},
    )
    session.execute(stmt)
    session.flush()
    form = get(key, session=session)
    assert form is not None
    return form


def update(
    key: StudentEvaluationID,
    *,
    status: EvaluationStatus | NotSet = NotSet(),
    submitted_at: datetime.datetime | None | NotSet = NotSet(),
    locked_at: datetime.datetime | None | NotSet = NotSet(),
    answers: dict[str, t.Any] | NotSet = NotSet(),
    session: Session = di.Provide["storage.persistent.session"],
) -> None:
    """Update a student feedback form.

    Raises:
        KeyError: If key does not correspond to a form
    """
    values: dict[str, t.Any] = {}
    if not isinstance(status, NotSet):
        values["status"] = status.value
    if not isinstance(submitted_at, NotSet):
        values["submitted_at"] = submitted_at
    if not isinstance(locked_at, NotSet):
        values["locked_at"] = locked_at
    if not isinstance(answers, NotSet):
        values["answers"] = answers

    stmt = (
        sqla
        .update(student_evaluations)
        .where(student_evaluations.student_evaluation_id == key)
        .values(**(values or {"student_evaluation_id": key}))
    )
    result = session.execute(stmt)
    if result.rowcount == 0:  # pyright: ignore[reportAttributeAccessIssue]
        raise KeyError(f"StudentEvaluation {key} not found")
    session.flush()
