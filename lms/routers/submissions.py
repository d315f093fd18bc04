import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lms.core.current_user import Caller
from lms.core.deps import get_db
from lms.core.permissions import require_student
from lms.models.assignment import Assignment
from lms.models.submission import Submission
from lms.schemas.submission import SubmissionCreate, SubmissionRead
from lms.services.access import ensure_student_assignment_access
from lms.services.lookups import ensure_assignment_exists

logger = logging.getLogger(__name__)

router = APIRouter()


def _ensure_open(assignment: Assignment, now: datetime) -> None:
    if assignment.available_from is None:
        return
    opens = assignment.available_from
    if opens.tzinfo is None:
        opens = opens.replace(tzinfo=timezone.utc)
    if now < opens:
        raise HTTPException(status_code=403, detail="Assignment is not yet available")


@router.post(
    "/assignments/{assignment_id}/submissions",
    response_model=SubmissionRead,
    status_code=status.HTTP_201_CREATED,
)
def submit_assignment(
    assignment_id: int,
    payload: SubmissionCreate,
    db: Session = Depends(get_db),
    me: Caller = Depends(require_student),
):
    assignment = ensure_assignment_exists(db, assignment_id)
    student_id = ensure_student_assignment_access(db, assignment, me).id

    now = datetime.now(timezone.utc)
    _ensure_open(assignment, now)

    # every submission is a new attempt; late attempts are accepted
    attempts = (
        db.query(func.count(Submission.id))
        .filter(Submission.assignment_id == assignment_id, Submission.student_id == student_id)
        .scalar()
    ) or 0

    if assignment.max_attempts is not None and attempts >= assignment.max_attempts:
        raise HTTPException(
            status_code=409,
            detail=f"Attempt limit reached ({assignment.max_attempts})",
        )

    s = Submission(
        assignment_id=assignment_id,
        student_id=student_id,
        attempt_number=attempts + 1,
        answer_text=payload.answer_text,
        file_url=payload.file_url,
        submitted_at=now,
    )
    db.add(s)

    try:
        db.commit()
    except IntegrityError:
        # another attempt with the same number was stored first
        db.rollback()
        raise HTTPException(
            status_code=409,
            detail="Another attempt was saved at the same time; please submit again",
        )
    except Exception:
        db.rollback()
        raise

    db.refresh(s)
    logger.info("student %s submitted attempt %s for assignment %s", student_id, s.attempt_number, assignment_id)
    return s


@router.get(
    "/assignments/{assignment_id}/submissions/me",
    response_model=list[SubmissionRead],
)
def my_submissions(
    assignment_id: int,
    db: Session = Depends(get_db),
    me: Caller = Depends(require_student),
):
    assignment = ensure_assignment_exists(db, assignment_id)
    student_id = ensure_student_assignment_access(db, assignment, me).id

    return (
        db.query(Submission)
        .filter(Submission.assignment_id == assignment_id, Submission.student_id == student_id)
        .order_by(Submission.attempt_number.desc())
        .all()
    )
