from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from lms.db.base_class import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    email: Mapped[str] = mapped_column(
        String(255), unique=True, index=True, nullable=False
    )
    full_name: Mapped[str | None] = mapped_column(String(255))
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    # raw value as stored; callers compare through lms.core.roles.Role
    role: Mapped[str] = mapped_column(String(50), nullable=False, default="student")

    teacher = relationship(
        "Teacher", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    student = relationship("Student", back_populates="user", uselist=False)
