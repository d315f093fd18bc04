import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from lms.core.current_user import Caller
from lms.core.deps import get_db
from lms.core.permissions import require_admin
from lms.models.teacher import Teacher
from lms.models.user import User
from lms.schemas.student import AdminStudentCreate, StudentRead
from lms.schemas.teacher import TeacherCreate, TeacherRead, TeacherUpdate
from lms.schemas.user import PasswordSet
from lms.services import accounts

logger = logging.getLogger(__name__)

router = APIRouter()


def _ensure_teacher_exists(db: Session, teacher_id: int) -> Teacher:
    teacher = db.query(Teacher).filter(Teacher.id == teacher_id).first()
    if not teacher:
        raise HTTPException(status_code=404, detail="Teacher not found")
    return teacher


@router.get("/teachers", response_model=list[TeacherRead])
def list_teachers(
    db: Session = Depends(get_db),
    admin: Caller = Depends(require_admin),
):
    return db.query(Teacher).order_by(Teacher.last_name.asc(), Teacher.id.asc()).all()


@router.post(
    "/teachers",
    response_model=TeacherRead,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Email already registered"}},
)
def create_teacher(
    payload: TeacherCreate,
    db: Session = Depends(get_db),
    admin: Caller = Depends(require_admin),
):
    return accounts.create_teacher(db, payload)


@router.patch("/teachers/{teacher_id}", response_model=TeacherRead)
def update_teacher(
    teacher_id: int,
    payload: TeacherUpdate,
    db: Session = Depends(get_db),
    admin: Caller = Depends(require_admin),
):
    teacher = _ensure_teacher_exists(db, teacher_id)
    changes = payload.model_dump(exclude_unset=True)

    email = changes.pop("email", None)
    if email is not None and email != teacher.user.email:
        if db.query(User).filter(User.email == email).first():
            raise HTTPException(status_code=409, detail="Email already registered")
        teacher.user.email = email

    for field, value in changes.items():
        setattr(teacher, field, value)
    teacher.user.full_name = " ".join(
        p for p in (teacher.first_name, teacher.middle_name, teacher.last_name) if p
    )

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(teacher)
    return teacher


@router.delete("/teachers/{teacher_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_teacher(
    teacher_id: int,
    db: Session = Depends(get_db),
    admin: Caller = Depends(require_admin),
):
    teacher = _ensure_teacher_exists(db, teacher_id)

    # removing the login removes the profile, its quarters and its roster
    db.delete(teacher.user)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("admin %s deleted teacher %s", admin.user.id, teacher_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/teachers/{teacher_id}/password", status_code=status.HTTP_204_NO_CONTENT)
def set_teacher_password(
    teacher_id: int,
    payload: PasswordSet,
    db: Session = Depends(get_db),
    admin: Caller = Depends(require_admin),
):
    teacher = _ensure_teacher_exists(db, teacher_id)
    accounts.set_password(db, teacher.user, payload.password)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/students",
    response_model=StudentRead,
    status_code=status.HTTP_201_CREATED,
)
def create_student_for_teacher(
    payload: AdminStudentCreate,
    db: Session = Depends(get_db),
    admin: Caller = Depends(require_admin),
):
    _ensure_teacher_exists(db, payload.teacher_id)
    return accounts.create_student(db, payload, payload.teacher_id)
