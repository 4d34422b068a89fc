"""Tests for viva.storage.group and viva.storage.schedule modules."""

from __future__ import annotations

import datetime
import typing as t

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from viva.model import DefenseSchedule, GroupID, ScheduleID, ScheduleStatus, ThesisGroup, User, UserRole
from viva.storage import group as group_storage
from viva.storage import schedule as schedule_storage


@pytest.fixture
def students(user_factory: t.Callable[..., User]) -> list[User]:
    return [user_factory(name=f"Student {i}", role=UserRole.Student) for i in range(2)]


class TestGroup(object):
    def test_get_with_members(
        self, db_session: Session, group_factory: t.Callable[..., ThesisGroup], students: list[User]
    ) -> None:
        group = group_factory(title="Crop Yield Forecasting", members=students)

        with db_session.begin():
            result = group_storage.get(group.group_id, with_members=True, session=db_session)

        assert result is not None
        assert result.title == "Crop Yield Forecasting"
        assert result.program == "BSCS"
        assert {m.student_id for m in result.members} == {s.user_id for s in students}

    def test_get_nonexistent_returns_none(self, db_session: Session) -> None:
        with db_session.begin():
            assert group_storage.get(GroupID(), session=db_session) is None

    def test_find_ordered_by_title(self, db_session: Session, group_factory: t.Callable[..., ThesisGroup]) -> None:
        group_factory(title="Zeta")
        group_factory(title="Alpha")

        with db_session.begin():
            result = group_storage.find(session=db_session)

        assert [g.title for g in result] == ["Alpha", "Zeta"]

    def test_find_members_by_group(
        self, db_session: Session, group_factory: t.Callable[..., ThesisGroup], students: list[User]
    ) -> None:
        first = group_factory(members=students[:1])
        group_factory(members=students[1:])

        with db_session.begin():
            result = group_storage.find_members(group_ids=[first.group_id], session=db_session)

        assert [m.student_id for m in result] == [students[0].user_id]

    def test_duplicate_member_raises(
        self, db_session: Session, group_factory: t.Callable[..., ThesisGroup], students: list[User]
    ) -> None:
        group = group_factory(members=students[:1])

        with pytest.raises(IntegrityError):
            with db_session.begin():
                group_storage.add_member(group.group_id, students[0].user_id, session=db_session)


class TestSchedule(object):
    def test_create_defaults(self, db_session: Session, group_factory: t.Callable[..., ThesisGroup]) -> None:
        group = group_factory()
        at = datetime.datetime(2026, 4, 20, 14, 0, tzinfo=datetime.UTC)

        with db_session.begin():
            schedule = schedule_storage.create({"group_id": group.group_id, "scheduled_at": at}, session=db_session)

        assert schedule.status is ScheduleStatus.Scheduled
        assert schedule.rubric_template_id is None
        assert schedule.scheduled_at == at

    def test_get_nonexistent_returns_none(self, db_session: Session) -> None:
        with db_session.begin():
            assert schedule_storage.get(ScheduleID(), session=db_session) is None

    def test_find_by_group_in_time_order(
        self,
        db_session: Session,
        group_factory: t.Callable[..., ThesisGroup],
        schedule_factory: t.Callable[..., DefenseSchedule],
    ) -> None:
        group = group_factory()
        late = schedule_factory(group=group, scheduled_at=datetime.datetime(2026, 5, 1, tzinfo=datetime.UTC))
        early = schedule_factory(group=group, scheduled_at=datetime.datetime(2026, 3, 1, tzinfo=datetime.UTC))
        schedule_factory()

        with db_session.begin():
            result = schedule_storage.find(group_id=group.group_id, session=db_session)

        assert [s.schedule_id for s in result] == [early.schedule_id, late.schedule_id]

    def test_panelists(
        self,
        db_session: Session,
        schedule_factory: t.Callable[..., DefenseSchedule],
        user_factory: t.Callable[..., User],
    ) -> None:
        panel = [user_factory(name="Dr. Reyes"), user_factory(name="Dr. Uy")]
        schedule = schedule_factory(panelists=panel)
        schedule_factory(panelists=panel[:1])

        with db_session.begin():
            result = schedule_storage.find_panelists(schedule_ids=[schedule.schedule_id], session=db_session)

        assert {p.panelist_id for p in result} == {u.user_id for u in panel}
