import logging

from fastapi import APIRouter, Depends

from ems_api.core.authorization import Role, require_role
from ems_api.database import SessionLocal
from ems_api.models.hr_user import HrUser
from ems_api.schemas.auth import EmployeeLoginRequest, HrLoginRequest, HrUserCreate, HrUserOut
from ems_api.services import auth_service
from ems_api.services.audit_service import record_audit
from ems_api.services.auth_service import ROLE_EMPLOYEE, ROLE_HR, Identity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/hr/login")
def hr_login(payload: HrLoginRequest):
    db = SessionLocal()
    try:
        user = auth_service.authenticate_hr(db, payload.name, payload.pin)
    finally:
        db.close()

    identity = Identity(role=ROLE_HR, name=user.name, hr_user_id=user.id)
    logger.info("HR login", extra={"hr_user_id": user.id})
    return {
        "token": auth_service.create_access_token(identity),
        "token_type": "bearer",
        "hr": {"id": user.id, "name": user.name},
    }


@router.post("/employee/login")
def employee_login(payload: EmployeeLoginRequest):
    db = SessionLocal()
    try:
        employee = auth_service.authenticate_employee(
            db,
            payload.pin,
            employee_id=payload.id,
            email=payload.email,
        )
    finally:
        db.close()

    identity = Identity(role=ROLE_EMPLOYEE, name=employee.name, employee_id=employee.id)
    logger.info("Employee login", extra={"employee_id": employee.id})
    return {
        "token": auth_service.create_access_token(identity),
        "token_type": "bearer",
        "employee": {"id": employee.id, "name": employee.name},
    }


@router.get("/hr/users", response_model=list[HrUserOut])
def list_hr_users(_role: Identity = Depends(require_role(Role.HR))):
    db = SessionLocal()
    try:
        rows = db.query(HrUser).order_by(HrUser.id.asc()).all()
        return [HrUserOut(id=r.id, name=r.name) for r in rows]
    finally:
        db.close()


@router.post("/hr/users", response_model=HrUserOut, status_code=201)
def create_hr_user(
    payload: HrUserCreate,
    identity: Identity = Depends(require_role(Role.HR)),
):
    db = SessionLocal()
    try:
        user = auth_service.create_hr_user(db, payload.name, payload.pin)
        db.commit()
        out = HrUserOut(id=user.id, name=user.name)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    record_audit(identity, "hr_user.create", "hr_user", out.id)
    return out
