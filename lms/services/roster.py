from typing import Optional

from sqlalchemy.orm import Session

from lms.models.section import Section
from lms.models.student import Student
from lms.schemas.progress import RosterStudent


def load_roster(db: Session, teacher_id: Optional[int]) -> list[RosterStudent]:
    """
    Students of one teacher, or every student when ``teacher_id`` is None.

    Ordered by last name, then first name, then id.
    """
    q = db.query(Student)
    if teacher_id is not None:
        q = q.filter(Student.teacher_id == teacher_id)
    students = q.order_by(
        Student.last_name.asc(), Student.first_name.asc(), Student.id.asc()
    ).all()

    section_ids = {s.section_id for s in students if s.section_id is not None}
    section_names: dict[int, str] = {}
    if section_ids:
        rows = db.query(Section.id, Section.name).filter(Section.id.in_(section_ids)).all()
        section_names = {r.id: r.name for r in rows}

    return [
        RosterStudent(
            id=s.id,
            first_name=s.first_name,
            middle_name=s.middle_name,
            last_name=s.last_name,
            lrn=s.lrn,
            section_id=s.section_id,
            section_name=section_names.get(s.section_id) if s.section_id is not None else None,
        )
        for s in students
    ]
