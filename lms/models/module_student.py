from sqlalchemy import Column, DateTime, ForeignKey, Integer, UniqueConstraint, func
from sqlalchemy.orm import relationship

from lms.db.base_class import Base


class ModuleStudent(Base):
    """Audience row of a private module."""

    __tablename__ = "module_students"

    id = Column(Integer, primary_key=True, index=True)
    module_id = Column(Integer, ForeignKey("modules.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(
        Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("module_id", "student_id", name="uq_module_students_module_student"),
    )

    module = relationship("Module", back_populates="audience")
    student = relationship("Student", back_populates="module_access")
