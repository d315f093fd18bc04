from lms.db.base_class import Base  # noqa: F401

# import models so SQLAlchemy registers them on Base.metadata
from lms.models import (  # noqa: F401
    assignment,
    assignment_student,
    module,
    module_student,
    quarter,
    quiz,
    section,
    student,
    submission,
    teacher,
    user,
)
