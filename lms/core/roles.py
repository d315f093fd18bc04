from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    TEACHER = "teacher"
    STUDENT = "student"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str | None) -> "Role":
        """Normalize a stored role string ("  Teacher " -> Role.TEACHER)."""
        if not value:
            return cls.UNKNOWN
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.UNKNOWN
