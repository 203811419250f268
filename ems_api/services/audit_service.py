import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.orm import Session

from ems_api.core.dates import isoformat_utc, to_utc_naive
from ems_api.database import SessionLocal
from ems_api.models.audit_log import AuditLog
from ems_api.services.auth_service import Identity

logger = logging.getLogger(__name__)

AUDIT_LIST_MAX = 200


def record_audit(
    actor: Identity,
    action: str,
    entity_type: str,
    entity_id: Optional[Any] = None,
    *,
    now: Optional[datetime] = None,
) -> None:
    """
    Best-effort audit write in its own session.

    Never raises: a failed audit write is logged and dropped so the operation
    being audited is not affected.
    """
    db = SessionLocal()
    try:
        row = AuditLog(
            actor_role=actor.role,
            actor_name=actor.name or actor.role,
            action=action,
            entity_type=entity_type,
            entity_id=None if entity_id is None else str(entity_id),
        )
        if now is not None:
            row.created_at = to_utc_naive(now)
        db.add(row)
        db.commit()
    except Exception:
        db.rollback()
        logger.warning(
            "Audit write failed",
            exc_info=True,
            extra={"action": action, "entity_type": entity_type, "entity_id": entity_id},
        )
    finally:
        db.close()


def list_audit(db: Session, limit: int = 50) -> list[dict[str, Any]]:
    limit = max(1, min(int(limit), AUDIT_LIST_MAX))
    rows = (
        db.query(AuditLog)
        .order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .limit(limit)
        .all()
    )
    return [
        {
            "id": r.id,
            "actor_role": r.actor_role,
            "actor_name": r.actor_name,
            "action": r.action,
            "entity_type": r.entity_type,
            "entity_id": r.entity_id,
            "created_at": isoformat_utc(r.created_at),
        }
        for r in rows
    ]
