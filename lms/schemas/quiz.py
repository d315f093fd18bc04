from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

QuizType = Literal["quiz", "pre_test", "post_test"]


class QuizChoiceCreate(BaseModel):
    text: str = Field(min_length=1)
    correct: bool = False


class QuizQuestionCreate(BaseModel):
    question_text: str = Field(min_length=1)
    instruction_text: Optional[str] = None
    points: float = Field(default=1, gt=0)
    choices: list[QuizChoiceCreate]

    @field_validator("question_text")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("question_text must not be blank")
        return v.strip()

    @model_validator(mode="after")
    def _choices_ok(self):
        if len(self.choices) < 2:
            raise ValueError("Each question needs at least 2 choices.")
        if not any(c.correct for c in self.choices):
            raise ValueError("Each question needs at least one correct choice.")
        return self


class QuizCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    type: QuizType = "quiz"
    max_attempts: int = Field(default=1, ge=1)
    time_limit_minutes: Optional[int] = Field(default=None, ge=1)
    available_from: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    shuffle: bool = False
    is_published: bool = False
    questions: list[QuizQuestionCreate] = Field(min_length=1)

    @model_validator(mode="after")
    def _window(self):
        if self.available_from and self.expires_at and self.expires_at < self.available_from:
            raise ValueError("Deadline must be after Available From.")
        return self


class QuizUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    max_attempts: Optional[int] = Field(default=None, ge=1)
    time_limit_minutes: Optional[int] = Field(default=None, ge=1)
    expires_at: Optional[datetime] = None
    is_published: Optional[bool] = None


class QuizChoiceRead(BaseModel):
    id: int
    order_index: int
    choice_text: str
    # left out for students taking the quiz
    is_correct: Optional[bool] = None

    class Config:
        from_attributes = True


class QuizQuestionRead(BaseModel):
    id: int
    order_index: int
    question_text: str
    instruction_text: Optional[str] = None
    points: float
    multi: bool = False
    choices: list[QuizChoiceRead]

    class Config:
        from_attributes = True


class QuizSummary(BaseModel):
    id: int
    module_id: int
    title: str
    type: str
    max_attempts: int
    time_limit_minutes: Optional[int] = None
    available_from: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    shuffle: bool
    is_published: bool
    total_points: float
    created_at: datetime

    class Config:
        from_attributes = True


class QuizDetail(QuizSummary):
    questions: list[QuizQuestionRead]


class QuizAnswers(BaseModel):
    # question id -> chosen choice ids
    answers: dict[int, list[int]] = {}
    auto_submitted: bool = False


class QuizAttemptRead(BaseModel):
    id: int
    quiz_id: int
    student_id: int
    attempt_number: int
    started_at: datetime
    submitted_at: Optional[datetime] = None
    duration_seconds: Optional[int] = None
    score: Optional[float] = None
    answers: Optional[dict[str, list[int]]] = None
    auto_submitted: bool = False

    class Config:
        from_attributes = True
