import os
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from lms.core.config import DEFAULT_QUARTERS
from lms.core.security import hash_password
from lms.db.base import Base
from lms.main import create_app
from lms.models.assignment import Assignment
from lms.models.assignment_student import AssignmentStudent
from lms.models.module import Module
from lms.models.module_student import ModuleStudent
from lms.models.quarter import Quarter
from lms.models.quiz import Quiz, QuizAttempt, QuizChoice, QuizQuestion
from lms.models.section import Section
from lms.models.student import Student
from lms.models.submission import Submission
from lms.models.teacher import Teacher
from lms.models.user import User

TEST_DB_FILE = "test_lms.db"
TEST_DB_URL = f"sqlite:///./{TEST_DB_FILE}"

PASSWORD = "password123"
# bcrypt is slow on purpose; hash once for every seeded account
PASSWORD_HASH = hash_password(PASSWORD)

app = create_app(TEST_DB_URL)
engine = app.state.engine
TestingSessionLocal = app.state.session_factory


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """Create a fresh schema once for the whole test session."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if os.path.exists(TEST_DB_FILE):
        os.remove(TEST_DB_FILE)


def _user(email: str, role: str, full_name: str) -> User:
    return User(email=email, full_name=full_name, role=role, hashed_password=PASSWORD_HASH)


@pytest.fixture(autouse=True)
def seed_data():
    """
    Seed a clean minimal dataset for each test:
    - admin, two teachers (teacher1 owns everything below)
    - roster of teacher1: Aquino (has login), Bautista, Cruz; teacher2: Diaz
    - teacher1: four default quarters, one module, one assignment (max 100, 3 attempts)
    - teacher2: one quarter, module and assignment
    """
    db = TestingSessionLocal()
    try:
        # Clear tables (child -> parent)
        for model in (
            QuizAttempt, QuizChoice, QuizQuestion, Quiz,
            AssignmentStudent, ModuleStudent,
            Submission, Assignment, Module, Quarter, Student, Section, Teacher, User,
        ):
            db.query(model).delete()
        db.commit()

        admin = _user("admin@example.com", "admin", "Site Admin")
        t1_user = _user("teacher1@example.com", "teacher", "Maria Santos")
        t2_user = _user("teacher2@example.com", "Teacher ", "Jose Reyes")
        s_user = _user("studentA@example.com", "student", "Ana Aquino")
        db.add_all([admin, t1_user, t2_user, s_user])
        db.commit()

        teacher1 = Teacher(user_id=t1_user.id, first_name="Maria", last_name="Santos")
        teacher2 = Teacher(user_id=t2_user.id, first_name="Jose", last_name="Reyes")
        db.add_all([teacher1, teacher2])
        db.commit()

        section = Section(name="Rizal", teacher_id=teacher1.id)
        db.add(section)
        db.commit()

        aquino = Student(
            user_id=s_user.id, teacher_id=teacher1.id, section_id=section.id,
            first_name="Ana", last_name="Aquino",
        )
        bautista = Student(teacher_id=teacher1.id, section_id=section.id, first_name="Ben", last_name="Bautista")
        cruz = Student(teacher_id=teacher1.id, first_name="Carla", middle_name="M", last_name="Cruz")
        diaz = Student(teacher_id=teacher2.id, first_name="Dan", last_name="Diaz")
        db.add_all([aquino, bautista, cruz, diaz])

        quarters = [Quarter(teacher_id=teacher1.id, name=name) for name in DEFAULT_QUARTERS]
        other_quarter = Quarter(teacher_id=teacher2.id, name=DEFAULT_QUARTERS[0])
        db.add_all(quarters + [other_quarter])
        db.commit()

        module = Module(quarter_id=quarters[0].id, title="Fractions")
        other_module = Module(quarter_id=other_quarter.id, title="Reading")
        db.add_all([module, other_module])
        db.commit()

        assignment = Assignment(
            module_id=module.id, name="Worksheet 1", instruction="Answer all items.",
            max_score=100, max_attempts=3,
        )
        other_assignment = Assignment(
            module_id=other_module.id, name="Essay", instruction="Write one page.", max_score=50,
        )
        db.add_all([assignment, other_assignment])
        db.commit()

        ids = {
            "admin_user_id": admin.id,
            "teacher1_id": teacher1.id,
            "teacher2_id": teacher2.id,
            "section_id": section.id,
            "aquino_id": aquino.id,
            "bautista_id": bautista.id,
            "cruz_id": cruz.id,
            "diaz_id": diaz.id,
            "quarter_id": quarters[0].id,
            "other_quarter_id": other_quarter.id,
            "module_id": module.id,
            "other_module_id": other_module.id,
            "assignment_id": assignment.id,
            "other_assignment_id": other_assignment.id,
        }
    finally:
        db.close()

    yield ids


@pytest.fixture()
def make_submission():
    """Insert a submission row directly; returns its id."""

    def _make(
        assignment_id: int,
        student_id: int,
        submitted_at: datetime | None,
        grade: float | None = None,
        attempt_number: int = 1,
    ) -> int:
        db = TestingSessionLocal()
        try:
            s = Submission(
                assignment_id=assignment_id,
                student_id=student_id,
                submitted_at=submitted_at,
                grade=grade,
                attempt_number=attempt_number,
                answer_text="my answer",
            )
            db.add(s)
            db.commit()
            return s.id
        finally:
            db.close()

    return _make


@pytest.fixture()
def client():
    with TestClient(app) as c:
        yield c
