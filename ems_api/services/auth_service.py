from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from sqlalchemy import func
from sqlalchemy.orm import Session
from werkzeug.security import check_password_hash, generate_password_hash

from ems_api.core.config import get_jwt_exp_hours, get_jwt_secret
from ems_api.core.errors import AuthenticationError, ConflictError, ValidationError
from ems_api.models.employee import Employee
from ems_api.models.hr_user import HrUser

JWT_ALGORITHM = "HS256"

ROLE_HR = "hr"
ROLE_EMPLOYEE = "employee"


@dataclass(frozen=True)
class Identity:
    role: str
    name: str
    employee_id: Optional[int] = None
    hr_user_id: Optional[int] = None

    @property
    def is_hr(self) -> bool:
        return self.role == ROLE_HR


def hash_pin(pin: str) -> str:
    pin = (pin or "").strip()
    if len(pin) < 4:
        raise ValidationError("PIN must be at least 4 characters")
    return generate_password_hash(pin)


def verify_pin(pin_hash: str, pin: str) -> bool:
    if not pin_hash or not pin:
        return False
    return check_password_hash(pin_hash, pin)


def create_access_token(identity: Identity) -> str:
    now = datetime.now(timezone.utc)
    if identity.is_hr:
        subject = f"hr:{identity.hr_user_id}"
    else:
        subject = f"employee:{identity.employee_id}"

    payload = {
        "sub": subject,
        "role": identity.role,
        "name": identity.name,
        "iat": now,
        "exp": now + timedelta(hours=get_jwt_exp_hours()),
    }
    if identity.employee_id is not None:
        payload["employee_id"] = int(identity.employee_id)
    if identity.hr_user_id is not None:
        payload["hr_user_id"] = int(identity.hr_user_id)
    return jwt.encode(payload, get_jwt_secret(), algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, get_jwt_secret(), algorithms=[JWT_ALGORITHM])
    except Exception as exc:
        raise ValueError("Invalid or expired token") from exc

    if "sub" not in payload or payload.get("role") not in {ROLE_HR, ROLE_EMPLOYEE}:
        raise ValueError("Invalid token claims")
    if payload["role"] == ROLE_EMPLOYEE and payload.get("employee_id") is None:
        raise ValueError("Invalid token claims")

    return payload


def identity_from_claims(claims: dict) -> Identity:
    employee_id = claims.get("employee_id")
    hr_user_id = claims.get("hr_user_id")
    return Identity(
        role=str(claims["role"]),
        name=str(claims.get("name") or ""),
        employee_id=None if employee_id is None else int(employee_id),
        hr_user_id=None if hr_user_id is None else int(hr_user_id),
    )


def authenticate_hr(db: Session, name: str, pin: str) -> HrUser:
    name = (name or "").strip()
    if not name or not pin:
        raise ValidationError("name and pin are required")

    user = db.query(HrUser).filter(func.lower(HrUser.name) == name.lower()).one_or_none()
    if user is None or not verify_pin(user.pin_hash, pin):
        raise AuthenticationError("Invalid credentials")
    return user


def authenticate_employee(
    db: Session,
    pin: str,
    *,
    employee_id: Optional[int] = None,
    email: Optional[str] = None,
) -> Employee:
    if not pin or (employee_id is None and not email):
        raise ValidationError("id or email and pin are required")

    q = db.query(Employee)
    if employee_id is not None:
        q = q.filter(Employee.id == int(employee_id))
    else:
        q = q.filter(func.lower(Employee.email) == email.strip().lower())

    employee = q.one_or_none()
    if employee is None or not employee.is_active or not verify_pin(employee.pin_hash, pin):
        raise AuthenticationError("Invalid credentials")
    return employee


def create_hr_user(db: Session, name: str, pin: str) -> HrUser:
    name = (name or "").strip()
    if not name:
        raise ValidationError("name is required")

    existing = db.query(HrUser).filter(func.lower(HrUser.name) == name.lower()).first()
    if existing is not None:
        raise ConflictError("HR user already exists")

    user = HrUser(name=name, pin_hash=hash_pin(pin))
    db.add(user)
    db.flush()
    return user


def ensure_bootstrap_hr_user(db: Session, name: str, pin: str) -> Optional[HrUser]:
    """Create the first HR account when the table is empty; caller commits."""
    if not name or not pin:
        return None
    if db.query(HrUser.id).first() is not None:
        return None
    return create_hr_user(db, name, pin)
