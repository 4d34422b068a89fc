from __future__ import annotations

import typing as t

import sqlalchemy as sqla

from viva.core import di
from viva.model import GroupID, GroupMember, GroupWithMembers, ThesisGroup, UserID

from . import Session
from .table import group_members, thesis_groups


@t.overload
def get(
    key: GroupID, *, with_members: t.Literal[False] = ..., session: Session = ...
) -> ThesisGroup | None: ...


@t.overload
def get(key: GroupID, *, with_members: t.Literal[True], session: Session = ...) -> GroupWithMembers | None: ...


def get(
    key: GroupID,
    *,
    with_members: bool = False,
    session: Session = di.Provide["storage.persistent.session"],
) -> ThesisGroup | GroupWithMembers | None:
    stmt = sqla.select(thesis_groups.__table__).where(thesis_groups.group_id == key)
    row = session.execute(stmt).mappings().one_or_none()
    if row is None:
        return None
    if with_members:
        members = find_members(group_ids=[key], session=session)
        return GroupWithMembers(**row, members=list(members))
    return ThesisGroup(**row)


def find(
    *,
    group_ids: t.Collection[GroupID] | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[ThesisGroup, ...]:
    stmt = sqla.select(thesis_groups.__table__).order_by(thesis_groups.title, thesis_groups.group_id)
    if group_ids is not None:
        stmt = stmt.where(thesis_groups.group_id.in_(list(group_ids)))
    rows = session.execute(stmt).mappings().all()
    return tuple(ThesisGroup(**row) for row in rows)


def find_members(
    *,
    group_ids: t.Collection[GroupID] | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[GroupMember, ...]:
    stmt = sqla.select(group_members.__table__).order_by(group_members.group_id, group_members.student_id)
    if group_ids is not None:
        stmt = stmt.where(group_members.group_id.in_(list(group_ids)))
    rows = session.execute(stmt).mappings().all()
    return tuple(GroupMember(**row) for row in rows)


def create(params: GroupCreateParams, session: Session = di.Provide["storage.persistent.session"]) -> ThesisGroup:
    group_id = GroupID()
    stmt = sqla.insert(thesis_groups).values(
        group_id=group_id,
        title=params["title"],
        program=params.get("program"),
        term=params.get("term"),
    )
    session.execute(stmt)
    session.flush()
    group = get(group_id, session=session)
    assert group is not None
    return group


def add_member(
    group_id: GroupID, student_id: UserID, session: Session = di.Provide["storage.persistent.session"]
) -> GroupMember:
    session.execute(sqla.insert(group_members).values(group_id=group_id, student_id=student_id))
    session.flush()
    stmt = sqla.select(group_members.__table__).where(
        group_members.group_id == group_id, group_members.student_id == student_id
    )
    return GroupMember(**session.execute(stmt).mappings().one())


class GroupCreateParams(t.TypedDict, total=False):
    title: t.Required[str]
    program: str | None
    term: str | None
