from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint, func
from sqlalchemy.orm import relationship

from lms.db.base_class import Base


class AssignmentStudent(Base):
    """Audience row of a private assignment."""

    __tablename__ = "assignment_students"

    id = Column(Integer, primary_key=True, index=True)
    assignment_id = Column(
        Integer, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    student_id = Column(
        Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("assignment_id", "student_id", name="uq_assignment_students_assignment_student"),
    )

    assignment = relationship("Assignment", back_populates="audience")
    student = relationship("Student", back_populates="assignment_access")
