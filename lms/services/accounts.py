import logging

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lms.core.config import DEFAULT_QUARTERS
from lms.core.roles import Role
from lms.core.security import hash_password
from lms.models.quarter import Quarter
from lms.models.section import Section
from lms.models.student import Student
from lms.models.teacher import Teacher
from lms.models.user import User
from lms.schemas.student import StudentCreate
from lms.schemas.teacher import TeacherCreate

logger = logging.getLogger(__name__)


def _full_name(first: str, middle: str | None, last: str) -> str:
    return " ".join(part for part in (first, middle, last) if part)


def _ensure_email_free(db: Session, email: str) -> None:
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=409, detail="Email already registered")


def _commit(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Email already registered")
    except Exception:
        db.rollback()
        raise


def create_teacher(db: Session, payload: TeacherCreate) -> Teacher:
    """User + teacher profile + the default quarters, in one transaction."""
    _ensure_email_free(db, payload.email)

    user = User(
        email=payload.email,
        full_name=_full_name(payload.first_name, payload.middle_name, payload.last_name),
        hashed_password=hash_password(payload.password),
        role=Role.TEACHER.value,
    )
    teacher = Teacher(
        user=user,
        first_name=payload.first_name,
        middle_name=payload.middle_name,
        last_name=payload.last_name,
    )
    teacher.quarters = [Quarter(name=name) for name in DEFAULT_QUARTERS]
    db.add(teacher)
    _commit(db)

    db.refresh(teacher)
    logger.info("created teacher %s (user %s)", teacher.id, teacher.user_id)
    return teacher


def ensure_section_usable(db: Session, section_id: int | None, teacher_id: int) -> None:
    if section_id is None:
        return
    section = db.query(Section).filter(Section.id == section_id).first()
    if not section:
        raise HTTPException(status_code=404, detail="Section not found")
    if section.teacher_id is not None and section.teacher_id != teacher_id:
        raise HTTPException(status_code=403, detail="Section belongs to another teacher")


def create_student(db: Session, payload: StudentCreate, teacher_id: int) -> Student:
    """Roster entry for ``teacher_id``; with email+password it also gets a login."""
    ensure_section_usable(db, payload.section_id, teacher_id)

    student = Student(
        teacher_id=teacher_id,
        section_id=payload.section_id,
        first_name=payload.first_name,
        middle_name=payload.middle_name,
        last_name=payload.last_name,
        lrn=payload.lrn,
    )

    if payload.email is not None:
        _ensure_email_free(db, payload.email)
        student.user = User(
            email=payload.email,
            full_name=_full_name(payload.first_name, payload.middle_name, payload.last_name),
            hashed_password=hash_password(payload.password),
            role=Role.STUDENT.value,
        )

    db.add(student)
    _commit(db)

    db.refresh(student)
    logger.info("created student %s for teacher %s", student.id, teacher_id)
    return student


def set_password(db: Session, user: User, password: str) -> None:
    user.hashed_password = hash_password(password)
    _commit(db)
