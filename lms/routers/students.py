import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from lms.core.current_user import Caller
from lms.core.deps import get_db
from lms.core.permissions import ensure_can_manage, require_staff, require_teacher_record
from lms.schemas.student import StudentCreate, StudentRead, StudentUpdate
from lms.schemas.user import PasswordSet
from lms.services import accounts
from lms.services.lookups import ensure_student_exists

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=StudentRead, status_code=status.HTTP_201_CREATED)
def create_student(
    payload: StudentCreate,
    db: Session = Depends(get_db),
    teacher: Caller = Depends(require_teacher_record),
):
    return accounts.create_student(db, payload, teacher.teacher_id)


@router.get("/{student_id}", response_model=StudentRead)
def get_student(
    student_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_staff),
):
    student = ensure_student_exists(db, student_id)
    ensure_can_manage(caller, student.teacher_id, "Forbidden: not your student.")
    return student


@router.patch("/{student_id}", response_model=StudentRead)
def update_student(
    student_id: int,
    payload: StudentUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_staff),
):
    student = ensure_student_exists(db, student_id)
    ensure_can_manage(caller, student.teacher_id, "Forbidden: not your student.")

    changes = payload.model_dump(exclude_unset=True)
    if "section_id" in changes:
        accounts.ensure_section_usable(db, changes["section_id"], student.teacher_id)

    for field, value in changes.items():
        setattr(student, field, value)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(student)
    return student


@router.delete("/{student_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_student(
    student_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_staff),
):
    student = ensure_student_exists(db, student_id)
    ensure_can_manage(caller, student.teacher_id, "Forbidden: not your student.")

    # the student's login goes with the roster entry
    if student.user is not None:
        db.delete(student.user)
    db.delete(student)

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("user %s deleted student %s", caller.user.id, student_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{student_id}/password", status_code=status.HTTP_204_NO_CONTENT)
def set_student_password(
    student_id: int,
    payload: PasswordSet,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_staff),
):
    student = ensure_student_exists(db, student_id)
    ensure_can_manage(caller, student.teacher_id, "Forbidden: not your student.")

    if student.user is None:
        raise HTTPException(status_code=409, detail="Student has no login")

    accounts.set_password(db, student.user, payload.password)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
