"""
Who may open a module or assignment as a student.

A student sees the curriculum of the teacher whose roster they are on.
A private module or assignment narrows that to the students on its access
list; an assignment inside a private module needs both.
"""
from typing import Iterable, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from lms.core.current_user import Caller
from lms.core.permissions import can_manage
from lms.models.assignment import Assignment
from lms.models.assignment_student import AssignmentStudent
from lms.models.module import Module
from lms.models.module_student import ModuleStudent
from lms.models.student import Student
from lms.services.lookups import ensure_module_exists, module_owner_id


def _caller_student(db: Session, caller: Caller) -> Optional[Student]:
    if caller.student_id is None:
        return None
    return db.query(Student).filter(Student.id == caller.student_id).first()


def _on_module_list(db: Session, module_id: int, student_id: int) -> bool:
    return (
        db.query(ModuleStudent)
        .filter(ModuleStudent.module_id == module_id, ModuleStudent.student_id == student_id)
        .first()
        is not None
    )


def _on_assignment_list(db: Session, assignment_id: int, student_id: int) -> bool:
    return (
        db.query(AssignmentStudent)
        .filter(AssignmentStudent.assignment_id == assignment_id, AssignmentStudent.student_id == student_id)
        .first()
        is not None
    )


def student_can_open_module(db: Session, module: Module, student: Student) -> bool:
    if student.teacher_id != module_owner_id(db, module):
        return False
    if module.is_private and not _on_module_list(db, module.id, student.id):
        return False
    return True


def student_can_open_assignment(db: Session, assignment: Assignment, student: Student) -> bool:
    module = ensure_module_exists(db, assignment.module_id)
    if not student_can_open_module(db, module, student):
        return False
    if assignment.is_private and not _on_assignment_list(db, assignment.id, student.id):
        return False
    return True


def ensure_student_module_access(db: Session, module: Module, caller: Caller) -> Student:
    student = _caller_student(db, caller)
    if student is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Student record not found")
    if not student_can_open_module(db, module, student):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Module is not assigned to you")
    return student


def ensure_student_assignment_access(db: Session, assignment: Assignment, caller: Caller) -> Student:
    student = _caller_student(db, caller)
    if student is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Student record not found")
    if not student_can_open_assignment(db, assignment, student):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Assignment is not assigned to you")
    return student


def ensure_can_view_module(db: Session, module: Module, caller: Caller) -> Optional[Student]:
    """None for the owner or an admin, else the student record allowed to open the module."""
    if can_manage(caller, module_owner_id(db, module)):
        return None
    if caller.student_id is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden: not your module.")
    return ensure_student_module_access(db, module, caller)


def _validate_roster(db: Session, owner_id: int, student_ids: set[int]) -> None:
    if not student_ids:
        return
    found = {
        sid
        for (sid,) in db.query(Student.id)
        .filter(Student.id.in_(student_ids), Student.teacher_id == owner_id)
        .all()
    }
    missing = sorted(student_ids - found)
    if missing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Students not on this roster: {', '.join(str(i) for i in missing)}",
        )


def module_access_ids(db: Session, module_id: int) -> list[int]:
    rows = db.query(ModuleStudent.student_id).filter(ModuleStudent.module_id == module_id).all()
    return sorted(sid for (sid,) in rows)


def assignment_access_ids(db: Session, assignment_id: int) -> list[int]:
    rows = db.query(AssignmentStudent.student_id).filter(AssignmentStudent.assignment_id == assignment_id).all()
    return sorted(sid for (sid,) in rows)


def replace_module_access(
    db: Session,
    module: Module,
    owner_id: int,
    student_ids: Iterable[int],
    is_private: Optional[bool] = None,
) -> list[int]:
    target = set(student_ids)
    _validate_roster(db, owner_id, target)

    current = set(module_access_ids(db, module.id))
    for sid in target - current:
        db.add(ModuleStudent(module_id=module.id, student_id=sid))
    if current - target:
        db.query(ModuleStudent).filter(
            ModuleStudent.module_id == module.id,
            ModuleStudent.student_id.in_(current - target),
        ).delete(synchronize_session=False)

    if is_private is not None:
        module.is_private = is_private
    return sorted(target)


def replace_assignment_access(
    db: Session,
    assignment: Assignment,
    owner_id: int,
    student_ids: Iterable[int],
    is_private: Optional[bool] = None,
) -> list[int]:
    target = set(student_ids)
    _validate_roster(db, owner_id, target)

    current = set(assignment_access_ids(db, assignment.id))
    for sid in target - current:
        db.add(AssignmentStudent(assignment_id=assignment.id, student_id=sid))
    if current - target:
        db.query(AssignmentStudent).filter(
            AssignmentStudent.assignment_id == assignment.id,
            AssignmentStudent.student_id.in_(current - target),
        ).delete(synchronize_session=False)

    if is_private is not None:
        assignment.is_private = is_private
    return sorted(target)
