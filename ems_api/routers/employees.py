from typing import List

from fastapi import APIRouter, Depends

from ems_api.core.authorization import Role, ensure_employee_access, require_role
from ems_api.database import SessionLocal
from ems_api.deps.auth import require_auth
from ems_api.schemas.employee import EmployeeCreate, EmployeeResponse
from ems_api.services import employee_service
from ems_api.services.audit_service import record_audit
from ems_api.services.auth_service import Identity

router = APIRouter(prefix="/employees", tags=["Employees"])


@router.post("", response_model=EmployeeResponse, status_code=201)
def create_employee(
    payload: EmployeeCreate,
    identity: Identity = Depends(require_role(Role.HR)),
):
    db = SessionLocal()
    try:
        row = employee_service.create_employee(
            db,
            name=payload.name,
            pin=payload.pin,
            email=payload.email,
            department=payload.department,
        )
        db.commit()
        db.refresh(row)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    record_audit(identity, "employee.create", "employee", row.id)
    return row


@router.get("", response_model=List[EmployeeResponse])
def list_employees(_role: Identity = Depends(require_role(Role.HR))):
    db = SessionLocal()
    try:
        return employee_service.list_employees(db)
    finally:
        db.close()


@router.get("/{employee_id}", response_model=EmployeeResponse)
def get_employee(
    employee_id: int,
    identity: Identity = Depends(require_auth),
):
    ensure_employee_access(identity, employee_id)

    db = SessionLocal()
    try:
        return employee_service.get_employee(db, employee_id)
    finally:
        db.close()


@router.delete("/{employee_id}")
def delete_employee(
    employee_id: int,
    identity: Identity = Depends(require_role(Role.HR)),
):
    db = SessionLocal()
    try:
        employee_service.delete_employee(db, employee_id)
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()

    record_audit(identity, "employee.delete", "employee", employee_id)
    return {"ok": True, "id": employee_id}
