from __future__ import annotations

import logging
import typing as t

import sqlalchemy as sqla

from viva.core import di
from viva.model import AuditAction, AuditLog, AuditLogID, UserID

from . import Session
from .table import audit_logs

logger = logging.getLogger(__name__)


def get(key: AuditLogID, session: Session = di.Provide["storage.persistent.session"]) -> AuditLog | None:
    stmt = sqla.select(audit_logs.__table__).where(audit_logs.audit_id == key)
    row = session.execute(stmt).mappings().one_or_none()
    return AuditLog(**row) if row else None


def find(
    *,
    entity: str | None = None,
    entity_id: str | None = None,
    action: AuditAction | None = None,
    session: Session = di.Provide["storage.persistent.session"],
) -> tuple[AuditLog, ...]:
    stmt = sqla.select(audit_logs.__table__).order_by(audit_logs.create_time, audit_logs.audit_id)
    if entity is not None:
        stmt = stmt.where(audit_logs.entity == entity)
    if entity_id is not None:
        stmt = stmt.where(audit_logs.entity_id == entity_id)
    if action is not None:
        stmt = stmt.where(audit_logs.action == action.value)
    rows = session.execute(stmt).mappings().all()
    return tuple(AuditLog(**row) for row in rows)


def create(params: AuditCreateParams, session: Session = di.Provide["storage.persistent.session"]) -> AuditLog:
    """Append an audit record. The log is never updated or deleted."""
    audit_id = AuditLogID()
    stmt = sqla.insert(audit_logs).values(
        audit_id=audit_id,
        actor_id=params["actor_id"],
        action=params["action"].value,
        entity=params["entity"],
        entity_id=params["entity_id"],
        details=params.get("details", {}),
    )
    session.execute(stmt)
    session.flush()
    logger.info(
        "audit record written",
        extra={
            "audit_id": audit_id,
            "actor_id": params["actor_id"],
            "action": params["action"].value,
            "entity": params["entity"],
            "entity_id": params["entity_id"],
        },
    )
    record = get(audit_id, session=session)
    assert record is not None
    return record


class AuditCreateParams(t.TypedDict, total=False):
    actor_id: t.Required[UserID]
    action: t.Required[AuditAction]
    entity: t.Required[str]
    entity_id: t.Required[str]
    details: dict[str, t.Any]
