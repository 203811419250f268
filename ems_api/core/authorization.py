from enum import Enum

from fastapi import Depends

from ems_api.core.errors import AuthorizationError
from ems_api.deps.auth import require_auth
from ems_api.services.auth_service import Identity


class Role(Enum):
    EMPLOYEE = "employee"
    HR = "hr"


_RANK = {
    Role.EMPLOYEE: 1,
    Role.HR: 2,
}


def require_role(role: Role):
    def dependency(identity: Identity = Depends(require_auth)) -> Identity:
        try:
            user_role = Role(str(identity.role).lower())
        except ValueError as exc:
            raise AuthorizationError("Invalid role claim") from exc

        if _RANK[user_role] < _RANK[role]:
            raise AuthorizationError("Insufficient role")

        return identity

    return dependency


def ensure_employee_access(identity: Identity, employee_id: int) -> None:
    """HR may act on any employee; an employee only on itself."""
    if identity.is_hr:
        return
    if identity.employee_id is not None and int(identity.employee_id) == int(employee_id):
        return
    raise AuthorizationError("Not allowed to access this employee")
