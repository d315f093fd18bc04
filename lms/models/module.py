from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, false, func
from sqlalchemy.orm import relationship

from lms.db.base_class import Base


class Module(Base):
    __tablename__ = "modules"

    id = Column(Integer, primary_key=True, index=True)
    quarter_id = Column(Integer, ForeignKey("quarters.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # private modules are visible only to the students on their access list
    is_private = Column(Boolean, nullable=False, default=False, server_default=false())

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    quarter = relationship("Quarter", back_populates="modules")
    assignments = relationship("Assignment", back_populates="module", cascade="all, delete-orphan")
    quizzes = relationship("Quiz", back_populates="module", cascade="all, delete-orphan")
    audience = relationship("ModuleStudent", back_populates="module", cascade="all, delete-orphan")
