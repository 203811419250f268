from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ems_api.core.errors import ConflictError, NotFoundError, ValidationError
from ems_api.models.employee import Employee
from ems_api.models.time_entry import TimeEntry
from ems_api.models.timesheet import Timesheet, TimesheetNote
from ems_api.services.auth_service import hash_pin


def get_employee(db: Session, employee_id: int) -> Employee:
    row = db.query(Employee).filter(Employee.id == int(employee_id)).first()
    if row is None:
        raise NotFoundError("Employee not found")
    return row


def create_employee(
    db: Session,
    *,
    name: str,
    pin: str,
    email: Optional[str] = None,
    department: Optional[str] = None,
) -> Employee:
    name = (name or "").strip()
    if not name:
        raise ValidationError("name is required")

    email = (email or "").strip().lower() or None
    if email is not None:
        taken = db.query(Employee.id).filter(func.lower(Employee.email) == email).first()
        if taken is not None:
            raise ConflictError("Email already in use")

    row = Employee(
        name=name,
        email=email,
        department=(department or "").strip() or None,
        pin_hash=hash_pin(pin),
        is_active=True,
    )
    db.add(row)
    db.flush()
    return row


def list_employees(db: Session) -> list[Employee]:
    return db.query(Employee).order_by(Employee.id.asc()).all()


def delete_employee(db: Session, employee_id: int) -> None:
    """
    Remove an employee and everything recorded against it.

    Child rows are deleted explicitly so the cascade holds on backends where
    foreign key enforcement is off. Caller commits.
    """
    employee = get_employee(db, employee_id)

    db.query(TimeEntry).filter(TimeEntry.employee_id == employee.id).delete(synchronize_session=False)
    db.query(Timesheet).filter(Timesheet.employee_id == employee.id).delete(synchronize_session=False)
    db.query(TimesheetNote).filter(TimesheetNote.employee_id == employee.id).delete(
        synchronize_session=False
    )
    db.delete(employee)
    db.flush()
