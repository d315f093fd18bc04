from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text, false, func
from sqlalchemy.orm import relationship

from lms.db.base_class import Base


class Assignment(Base):
    __tablename__ = "assignments"

    id = Column(Integer, primary_key=True, index=True)
    module_id = Column(Integer, ForeignKey("modules.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    instruction = Column(Text, nullable=False)
    max_score = Column(Float, nullable=False)
    max_attempts = Column(Integer, nullable=True)  # NULL = unlimited
    is_private = Column(Boolean, nullable=False, default=False, server_default=false())

    available_from = Column(DateTime(timezone=True), nullable=True)
    due_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    module = relationship("Module", back_populates="assignments")

    submissions = relationship("Submission", back_populates="assignment", cascade="all, delete-orphan")
    audience = relationship("AssignmentStudent", back_populates="assignment", cascade="all, delete-orphan")
