from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


class FilterQuarter(BaseModel):
    id: int
    name: str


class FilterModule(BaseModel):
    id: int
    title: str
    quarter_id: int


class FilterAssignment(BaseModel):
    id: int
    name: str
    module_id: int
    max_score: Optional[float] = None


class FiltersResponse(BaseModel):
    quarters: Optional[list[FilterQuarter]] = None
    modules: Optional[list[FilterModule]] = None
    assignments: Optional[list[FilterAssignment]] = None
    debug: dict = {}


class RosterStudent(BaseModel):
    id: int
    first_name: str
    middle_name: Optional[str] = None
    last_name: str
    lrn: Optional[str] = None
    section_id: Optional[int] = None
    section_name: Optional[str] = None


class RosterResponse(BaseModel):
    students: list[RosterStudent]


class LatestSubmission(BaseModel):
    id: int
    assignment_id: int
    student_id: int
    attempt_number: int = 1
    submitted_at: Optional[datetime] = None
    grade: Optional[float] = None
    feedback: Optional[str] = None
    file_url: Optional[str] = None
    answer_text: Optional[str] = None

    class Config:
        from_attributes = True


class ProgressMetrics(BaseModel):
    submitted: int
    not_submitted: int
    graded: int
    avg_score: Optional[float] = None


class DatasetRowCounts(BaseModel):
    roster: int
    subs_all: int
    subs_latest: int


class DatasetDebug(BaseModel):
    t_ms: int
    rows: DatasetRowCounts


class AssignmentDataset(BaseModel):
    roster: list[RosterStudent]
    latest_submissions: list[LatestSubmission]
    metrics: ProgressMetrics
    debug: Optional[DatasetDebug] = None


class GradeUpdate(BaseModel):
    submission_id: int
    # raw JSON value; "87.5" is accepted, booleans are not. Checked by the handler
    grade: Any = None
    feedback: Optional[str] = None


class GradeResult(BaseModel):
    id: int
    grade: Optional[float] = None
    feedback: Optional[str] = None

    class Config:
        from_attributes = True


class GradeResponse(BaseModel):
    ok: bool = True
    data: GradeResult
