from __future__ import annotations

import typing as t

import sqlalchemy as sqla

from viva.core import di
from viva.model import User, UserID, UserRole

from . import Session
from .table import users


def get(key: UserID, session: Session = di.Provide["storage.persistent.session"]) -> User | None:
    stmt = sqla.select(users.__table__).where(users.user_id == key)
    row = session.execute(stmt).mappings().one_or_none()
    return User(**row) if row else None


def find(
    *,
    user_ids: t.Collection[UserID] | None = None,
    role: UserRole | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[User, ...]:
    stmt = sqla.select(users.__table__).order_by(users.name, users.user_id)
    if user_ids is not None:
        stmt = stmt.where(users.user_id.in_(list(user_ids)))
    if role is not None:
        stmt = stmt.where(users.role == role.value)
    rows = session.execute(stmt).mappings().all()
    return tuple(User(**row) for row in rows)


def create(params: UserCreateParams, session: Session = di.Provide["storage.persistent.session"]) -> User:
    user_id = UserID()
    stmt = sqla.insert(users).values(
        user_id=user_id,
        email=params["email"],
        name=params["name"],
        role=params["role"].value,
    )
    session.execute(stmt)
    session.flush()
    user = get(user_id, session=session)
    assert user is not None
    return user


class UserCreateParams(t.TypedDict):
    email: str
    name: str
    role: UserRole
