import enum
import typing as t

from .base import WithCtime
from .id import AuditLogID, UserID


class AuditAction(enum.Enum):
    EvaluationUnlock = "evaluation.unlock"
    EvaluationForceDelete = "evaluation.force_delete"


class AuditLog(WithCtime):
    audit_id: AuditLogID
    actor_id: UserID
    action: AuditAction
    entity: str
    entity_id: str
    details: dict[str, t.Any] = {}
