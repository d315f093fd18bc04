from fastapi import Depends, HTTPException, status

from lms.core.current_user import Caller, get_caller
from lms.core.roles import Role


def can_manage(caller: Caller, owner_teacher_id: int | None) -> bool:
    """Admins manage everything; a teacher manages only what they own."""
    if caller.is_admin:
        return True
    if caller.role is not Role.TEACHER or caller.teacher_id is None:
        return False
    return owner_teacher_id is not None and owner_teacher_id == caller.teacher_id


def ensure_can_manage(
    caller: Caller,
    owner_teacher_id: int | None,
    detail: str = "Forbidden: not your resource.",
) -> None:
    if not can_manage(caller, owner_teacher_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


def require_roles(*roles: Role):
    allowed = frozenset(roles)

    def dependency(caller: Caller = Depends(get_caller)) -> Caller:
        if caller.role not in allowed:
            names = " or ".join(r.value for r in roles)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"{names.capitalize()} role required",
            )
        return caller

    return dependency


require_admin = require_roles(Role.ADMIN)
require_staff = require_roles(Role.TEACHER, Role.ADMIN)
require_student = require_roles(Role.STUDENT)


def require_teacher_record(caller: Caller = Depends(require_staff)) -> Caller:
    """Staff caller that also has a teacher profile (admins without one are refused)."""
    if caller.teacher_id is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Teacher record not found",
        )
    return caller
