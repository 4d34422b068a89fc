from __future__ import annotations

import datetime
import typing as t

import sqlalchemy as sqla

from viva.core import di
from viva.model import DefenseSchedule, GroupID, RubricTemplateID, ScheduleID, SchedulePanelist, ScheduleStatus, \
    UserID

from . import Session
from .table import defense_schedules, schedule_panelists


def get(key: ScheduleID, session: Session = di.Provide["storage.persistent.session"]) -> DefenseSchedule | None:
    stmt = sqla.select(defense_schedules.__table__).where(defense_schedules.schedule_id == key)
    row = session.execute(stmt).mappings().one_or_none()
    return DefenseSchedule(**row) if row else None


def find(
    *,
    group_id: GroupID | None = None,
    status: ScheduleStatus | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[DefenseSchedule, ...]:
    stmt = sqla.select(defense_schedules.__table__).order_by(
        defense_schedules.scheduled_at, defense_schedules.schedule_id
    )
    if group_id is not None:
        stmt = stmt.where(defense_schedules.group_id == group_id)
    if status is not None:
        stmt = stmt.where(defense_schedules.status == status.value)
    rows = session.execute(stmt).mappings().all()
    return tuple(DefenseSchedule(**row) for row in rows)


def create(
    params: ScheduleCreateParams, session: Session = di.Provide["storage.persistent.session"]
) -> DefenseSchedule:
    schedule_id = ScheduleID()
    stmt = sqla.insert(defense_schedules).values(
        schedule_id=schedule_id,
        group_id=params["group_id"],
        rubric_template_id=params.get("rubric_template_id"),
        scheduled_at=params["scheduled_at"],
        room=params.get("room"),
        status=params.get("status", ScheduleStatus.Scheduled).value,
    )
    session.execute(stmt)
    session.flush()
    schedule = get(schedule_id, session=session)
    assert schedule is not None
    return schedule


def find_panelists(
    *,
    schedule_ids: t.Collection[ScheduleID] | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[SchedulePanelist, ...]:
    stmt = sqla.select(schedule_panelists.__table__).order_by(
        schedule_panelists.schedule_id, schedule_panelists.panelist_id
    )
    if schedule_ids is not None:
        stmt = stmt.where(schedule_panelists.schedule_id.in_(list(schedule_ids)))
    rows = session.execute(stmt).mappings().all()
    return tuple(SchedulePanelist(**row) for row in rows)


def add_panelist(
    schedule_id: ScheduleID, panelist_id: UserID, session: Session = di.Provide["storage.persistent.session"]
) -> SchedulePanelist:
    session.execute(sqla.insert(schedule_panelists).values(schedule_id=schedule_id, panelist_id=panelist_id))
    session.flush()
    stmt = sqla.select(schedule_panelists.__table__).where(
        schedule_panelists.schedule_id == schedule_id, schedule_panelists.panelist_id == panelist_id
    )
    return SchedulePanelist(**session.execute(stmt).mappings().one())


class ScheduleCreateParams(t.TypedDict, total=False):
    group_id: t.Required[GroupID]
    scheduled_at: t.Required[datetime.datetime]
    rubric_template_id: RubricTemplateID | None
    room: str | None
    status: ScheduleStatus
