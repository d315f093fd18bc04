from fastapi import HTTPException
from sqlalchemy.orm import Session

from lms.models.assignment import Assignment
from lms.models.module import Module
from lms.models.quarter import Quarter
from lms.models.quiz import Quiz, QuizAttempt
from lms.models.student import Student
from lms.models.submission import Submission


def ensure_quarter_exists(db: Session, quarter_id: int) -> Quarter:
    q = db.query(Quarter).filter(Quarter.id == quarter_id).first()
    if not q:
        raise HTTPException(status_code=404, detail="Quarter not found")
    return q


def ensure_module_exists(db: Session, module_id: int) -> Module:
    m = db.query(Module).filter(Module.id == module_id).first()
    if not m:
        raise HTTPException(status_code=404, detail="Module not found")
    return m


def ensure_assignment_exists(db: Session, assignment_id: int) -> Assignment:
    a = db.query(Assignment).filter(Assignment.id == assignment_id).first()
    if not a:
        raise HTTPException(status_code=404, detail="Assignment not found")
    return a


def ensure_submission_exists(db: Session, submission_id: int) -> Submission:
    s = db.query(Submission).filter(Submission.id == submission_id).first()
    if not s:
        raise HTTPException(status_code=404, detail="Submission not found")
    return s


def ensure_student_exists(db: Session, student_id: int) -> Student:
    s = db.query(Student).filter(Student.id == student_id).first()
    if not s:
        raise HTTPException(status_code=404, detail="Student not found")
    return s


def ensure_quiz_exists(db: Session, quiz_id: int) -> Quiz:
    q = db.query(Quiz).filter(Quiz.id == quiz_id).first()
    if not q:
        raise HTTPException(status_code=404, detail="Quiz not found")
    return q


def ensure_quiz_attempt_exists(db: Session, attempt_id: int) -> QuizAttempt:
    a = db.query(QuizAttempt).filter(QuizAttempt.id == attempt_id).first()
    if not a:
        raise HTTPException(status_code=404, detail="Quiz attempt not found")
    return a


def module_owner_id(db: Session, module: Module) -> int:
    return ensure_quarter_exists(db, module.quarter_id).teacher_id


def assignment_owner_id(db: Session, assignment: Assignment) -> int:
    """Walk assignment -> module -> quarter to the owning teacher id."""
    module = ensure_module_exists(db, assignment.module_id)
    return module_owner_id(db, module)


def quiz_owner_id(db: Session, quiz: Quiz) -> int:
    module = ensure_module_exists(db, quiz.module_id)
    return module_owner_id(db, module)
