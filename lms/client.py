"""
Grading-session client for the progress dashboard.

Holds one assignment's dataset locally, the way the review screen does: a
grade is written to the server first and merged into the local copy only
once the server has confirmed it.
"""
import logging
from typing import Optional

import httpx

from lms.schemas.progress import AssignmentDataset, GradeResponse, LatestSubmission, ProgressMetrics, RosterStudent
from lms.services import progress

logger = logging.getLogger(__name__)


class ProgressClientError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DatasetFetchError(ProgressClientError):
    """Roster or submissions could not be loaded."""


class GradeWriteError(ProgressClientError):
    """The server refused or failed to store a grade."""


def _error_detail(response: httpx.Response, fallback: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return fallback
    detail = body.get("detail") if isinstance(body, dict) else None
    return detail if isinstance(detail, str) else fallback


class ProgressReviewer:
    """
    Review-and-grade session for one assignment.

    ``http`` is any ``httpx.Client`` already pointed at the service (base_url
    and Authorization header set); FastAPI's TestClient works as well.
    """

    def __init__(self, http: httpx.Client, assignment_id: int):
        self.http = http
        self.assignment_id = assignment_id
        self.roster: list[RosterStudent] = []
        self.latest: list[LatestSubmission] = []

    def load(self) -> "ProgressReviewer":
        try:
            r = self.http.get("/progress/assignment", params={"assignment_id": self.assignment_id})
        except httpx.HTTPError as e:
            raise DatasetFetchError(f"Failed to load assignment dataset: {e}") from e

        if r.status_code != 200:
            raise DatasetFetchError(
                _error_detail(r, "Failed to load assignment dataset."),
                status_code=r.status_code,
            )

        dataset = AssignmentDataset.model_validate(r.json())
        # replace both together; never keep a mix of old and new rows
        self.roster, self.latest = dataset.roster, dataset.latest_submissions
        return self

    @property
    def metrics(self) -> ProgressMetrics:
        return progress.compute_metrics(self.latest, self.roster)

    @property
    def submitted(self) -> list[LatestSubmission]:
        return progress.display_order(self.latest)

    @property
    def not_submitted(self) -> list[RosterStudent]:
        return progress.not_submitted(self.roster, self.latest)

    def student(self, student_id: int) -> Optional[RosterStudent]:
        return next((s for s in self.roster if s.id == student_id), None)

    def next_ungraded(self, current_id: Optional[int] = None) -> Optional[LatestSubmission]:
        return progress.next_ungraded(self.submitted, current_id)

    def grade(self, submission_id: int, grade: float, feedback: Optional[str] = None) -> LatestSubmission | None:
        """Store a grade; returns the updated local entry (None if not in this dataset)."""
        try:
            r = self.http.post(
                "/progress/grade",
                json={"submission_id": submission_id, "grade": grade, "feedback": feedback},
            )
        except httpx.HTTPError as e:
            raise GradeWriteError(f"Failed to save grade: {e}") from e

        if r.status_code != 200:
            raise GradeWriteError(_error_detail(r, "Failed to save grade."), status_code=r.status_code)

        saved = GradeResponse.model_validate(r.json()).data
        self.latest = progress.apply_grade(self.latest, saved.id, saved.grade, saved.feedback)
        logger.debug("grade for submission %s merged locally", saved.id)

        return next((s for s in self.latest if s.id == saved.id), None)
