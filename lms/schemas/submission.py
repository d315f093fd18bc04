from datetime import datetime
from typing import Optional

from pydantic import BaseModel, model_validator


class SubmissionCreate(BaseModel):
    answer_text: Optional[str] = None
    file_url: Optional[str] = None

    @model_validator(mode="after")
    def _not_empty(self):
        if not (self.answer_text and self.answer_text.strip()) and not self.file_url:
            raise ValueError("answer_text or file_url is required")
        return self


class SubmissionRead(BaseModel):
    id: int
    assignment_id: int
    student_id: int
    attempt_number: int
    answer_text: Optional[str] = None
    file_url: Optional[str] = None
    submitted_at: Optional[datetime] = None
    grade: Optional[float] = None
    feedback: Optional[str] = None

    class Config:
        from_attributes = True
