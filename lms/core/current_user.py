from dataclasses import dataclass

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from lms.core.deps import get_db
from lms.core.roles import Role
from lms.core.security import decode_access_token
from lms.models.student import Student
from lms.models.teacher import Teacher
from lms.models.user import User

bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Caller:
    """Who is calling, resolved once per request.

    ``teacher_id`` / ``student_id`` point at the caller's profile rows when
    they exist; an admin normally has neither.
    """

    user: User
    role: Role
    teacher_id: int | None = None
    student_id: int | None = None

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_access_token(credentials.credentials)
    except jwt.InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    sub = payload.get("sub")
    if sub is None or not str(sub).isdigit():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = db.query(User).filter(User.id == int(sub)).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def get_caller(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Caller:
    role = Role.parse(user.role)

    teacher = db.query(Teacher.id).filter(Teacher.user_id == user.id).first()
    student = db.query(Student.id).filter(Student.user_id == user.id).first()

    return Caller(
        user=user,
        role=role,
        teacher_id=teacher.id if teacher else None,
        student_id=student.id if student else None,
    )
