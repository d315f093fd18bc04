import logging
import math
import time
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lms.core.config import DATASET_CACHE_SECONDS, FILTERS_CACHE_SECONDS
from lms.core.current_user import Caller, get_caller
from lms.core.deps import get_db
from lms.core.permissions import ensure_can_manage, require_staff, require_teacher_record
from lms.models.assignment import Assignment
from lms.models.module import Module
from lms.models.quarter import Quarter
from lms.models.submission import Submission
from lms.schemas.progress import (
    AssignmentDataset,
    FiltersResponse,
    GradeResponse,
    GradeUpdate,
    LatestSubmission,
    RosterResponse,
)
from lms.schemas.user import WhoAmI
from lms.services import progress
from lms.services.lookups import (
    assignment_owner_id,
    ensure_assignment_exists,
    ensure_module_exists,
    ensure_quarter_exists,
    ensure_submission_exists,
)
from lms.services.roster import load_roster

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/progress", tags=["progress"])


def _elapsed_ms(t0: float) -> int:
    return round((time.monotonic() - t0) * 1000)


@router.get("/whoami", response_model=WhoAmI)
def whoami(caller: Caller = Depends(get_caller)):
    return {
        "user": caller.user,
        "role": caller.role.value,
        "teacher_id": caller.teacher_id,
        "student_id": caller.student_id,
    }


@router.get(
    "/filters",
    response_model=FiltersResponse,
    response_model_exclude_none=True,
)
def filters(
    response: Response,
    quarter_id: Optional[int] = None,
    module_id: Optional[int] = None,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_teacher_record),
):
    """
    Quarter -> module -> assignment cascade for the progress dashboard.

    - no params: the caller's quarters
    - quarter_id: modules in that quarter
    - module_id: assignments in that module (wins over quarter_id)
    """
    t0 = time.monotonic()
    response.headers["Cache-Control"] = f"private, max-age={FILTERS_CACHE_SECONDS}"

    if module_id is not None:
        module = ensure_module_exists(db, module_id)
        quarter = ensure_quarter_exists(db, module.quarter_id)
        ensure_can_manage(caller, quarter.teacher_id, "Forbidden: not your module.")

        rows = (
            db.query(Assignment)
            .filter(Assignment.module_id == module_id)
            .order_by(Assignment.created_at.asc(), Assignment.id.asc())
            .all()
        )
        return {
            "assignments": [
                {"id": a.id, "name": a.name, "module_id": a.module_id, "max_score": a.max_score}
                for a in rows
            ],
            "debug": {"t_ms": _elapsed_ms(t0)},
        }

    if quarter_id is not None:
        quarter = ensure_quarter_exists(db, quarter_id)
        ensure_can_manage(caller, quarter.teacher_id, "Forbidden: not your quarter.")

        rows = (
            db.query(Module)
            .filter(Module.quarter_id == quarter_id)
            .order_by(Module.created_at.asc(), Module.id.asc())
            .all()
        )
        return {
            "modules": [{"id": m.id, "title": m.title, "quarter_id": m.quarter_id} for m in rows],
            "debug": {"t_ms": _elapsed_ms(t0)},
        }

    rows = (
        db.query(Quarter)
        .filter(Quarter.teacher_id == caller.teacher_id)
        .order_by(Quarter.created_at.asc(), Quarter.id.asc())
        .all()
    )
    return {
        "quarters": [{"id": q.id, "name": q.name} for q in rows],
        "debug": {"t_ms": _elapsed_ms(t0)},
    }


@router.get("/roster", response_model=RosterResponse)
def roster(
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    # teacher: own students; admin: everyone; anybody else: nothing
    if caller.teacher_id is not None:
        return {"students": load_roster(db, caller.teacher_id)}
    if caller.is_admin:
        return {"students": load_roster(db, None)}
    return {"students": []}


@router.get("/assignment", response_model=AssignmentDataset)
def assignment_dataset(
    response: Response,
    assignment_id: Optional[int] = None,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_staff),
):
    t0 = time.monotonic()

    if assignment_id is None:
        raise HTTPException(status_code=400, detail="Missing assignment_id")

    assignment = ensure_assignment_exists(db, assignment_id)
    owner_id = assignment_owner_id(db, assignment)
    ensure_can_manage(caller, owner_id, "Forbidden: not your assignment.")

    try:
        # roster belongs to the assignment's owner, also when an admin is looking
        students = load_roster(db, owner_id)
        all_subs = db.query(Submission).filter(Submission.assignment_id == assignment_id).all()
    except SQLAlchemyError:
        logger.exception("loading dataset for assignment %s failed", assignment_id)
        raise HTTPException(status_code=500, detail="Failed to load assignment dataset.")

    latest = list(progress.reduce_latest(all_subs).values())
    metrics = progress.compute_metrics(latest, students)

    response.headers["Cache-Control"] = f"private, max-age={DATASET_CACHE_SECONDS}"
    return {
        "roster": students,
        "latest_submissions": [LatestSubmission.model_validate(s) for s in latest],
        "metrics": metrics,
        "debug": {
            "t_ms": _elapsed_ms(t0),
            "rows": {
                "roster": len(students),
                "subs_all": len(all_subs),
                "subs_latest": len(latest),
            },
        },
    }


def _parse_grade(raw) -> float:
    if isinstance(raw, bool):
        raw = None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        value = math.nan
    if not math.isfinite(value):
        raise HTTPException(
            status_code=400,
            detail="submission_id and numeric grade are required.",
        )
    return value


@router.post("/grade", response_model=GradeResponse)
def grade_submission(
    payload: GradeUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_staff),
):
    grade = _parse_grade(payload.grade)
    feedback = payload.feedback.strip() if payload.feedback else None

    sub = ensure_submission_exists(db, payload.submission_id)
    assignment = ensure_assignment_exists(db, sub.assignment_id)
    ensure_can_manage(caller, assignment_owner_id(db, assignment), "Only the assignment owner can grade")

    if grade < 0 or grade > assignment.max_score:
        raise HTTPException(
            status_code=400,
            detail=f"grade must be between 0 and {assignment.max_score:g}",
        )

    sub.grade = grade
    sub.feedback = feedback
    sub.graded_at = datetime.now(timezone.utc)

    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("saving grade for submission %s failed", sub.id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save grade.",
        )

    db.refresh(sub)
    logger.info("submission %s graded %s by user %s", sub.id, sub.grade, caller.user.id)
    return {"ok": True, "data": sub}
