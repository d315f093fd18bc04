"""
Progress aggregation for one assignment.

Everything here is pure: the functions work on already-fetched rows (ORM
objects or ``LatestSubmission`` models, anything with the same attributes)
and never touch the database.
"""
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Sequence, TypeVar

from lms.core.config import SCORE_DECIMALS
from lms.schemas.progress import LatestSubmission, ProgressMetrics

T = TypeVar("T")

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes; treat them as UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _recency_key(sub) -> tuple:
    """
    Sort key, largest = most recent:
    - timestamped submissions above untimestamped ones
    - submitted_at
    - attempt_number, then id (deterministic tie-break)
    """
    submitted_at = _as_utc(sub.submitted_at)
    return (
        submitted_at is not None,
        submitted_at or _EPOCH,
        getattr(sub, "attempt_number", None) or 0,
        sub.id,
    )


def reduce_latest(submissions: Iterable[T]) -> dict[int, T]:
    """
    Collapse attempts into one submission per student (the most recent).

    The mapping iterates newest first, untimestamped entries last.
    """
    latest: dict[int, T] = {}
    for sub in sorted(submissions, key=_recency_key, reverse=True):
        latest.setdefault(sub.student_id, sub)
    return latest


def round_score(value: float, places: int = SCORE_DECIMALS) -> float:
    """Round half-up (87.125 -> 87.13), unlike the built-in banker's round()."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def compute_metrics(latest: Iterable, roster: Optional[Sequence] = None) -> ProgressMetrics:
    entries = list(latest)

    submitted = sum(1 for s in entries if s.submitted_at is not None)
    grades = [float(s.grade) for s in entries if s.grade is not None]
    graded = len(grades)
    avg_score = round_score(sum(grades) / graded) if graded else None

    missing = len(not_submitted(roster, entries)) if roster is not None else 0

    return ProgressMetrics(
        submitted=submitted,
        not_submitted=missing,
        graded=graded,
        avg_score=avg_score,
    )


def display_order(latest: Iterable[T]) -> list[T]:
    """Submitted entries, newest first (the order a reviewer walks through)."""
    submitted = [s for s in latest if s.submitted_at is not None]
    return sorted(submitted, key=_recency_key, reverse=True)


def not_submitted(roster: Sequence[T], latest: Iterable) -> list[T]:
    submitted_ids = {s.student_id for s in latest if s.submitted_at is not None}
    return [student for student in roster if student.id not in submitted_ids]


def apply_grade(
    latest: list[LatestSubmission],
    submission_id: int,
    grade: Optional[float],
    feedback: Optional[str],
) -> list[LatestSubmission]:
    """
    Merge a server-confirmed grade into the local collection.

    Unknown ids are ignored: the same list object comes back untouched.
    """
    if not any(s.id == submission_id for s in latest):
        return latest

    return [
        s.model_copy(update={"grade": grade, "feedback": feedback})
        if s.id == submission_id
        else s
        for s in latest
    ]


def next_ungraded(ordered: Iterable[T], current_id: Optional[int]) -> Optional[T]:
    """First ungraded entry after skipping the one under review; no re-sort."""
    for sub in ordered:
        if sub.grade is None and sub.id != current_id:
            return sub
    return None
