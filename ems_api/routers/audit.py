from fastapi import APIRouter, Depends, Query

from ems_api.core.authorization import Role, require_role
from ems_api.database import SessionLocal
from ems_api.services.audit_service import AUDIT_LIST_MAX, list_audit
from ems_api.services.auth_service import Identity

router = APIRouter(prefix="/audit", tags=["Audit"])


@router.get("")
def list_audit_endpoint(
    limit: int = Query(default=50, ge=1, le=AUDIT_LIST_MAX),
    _role: Identity = Depends(require_role(Role.HR)),
):
    db = SessionLocal()
    try:
        return {"rows": list_audit(db, limit=limit)}
    finally:
        db.close()
