from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class QuarterRead(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class ModuleCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    is_private: bool = False


class ModuleRead(BaseModel):
    id: int
    title: str
    quarter_id: int
    is_private: bool = False

    class Config:
        from_attributes = True


class AssignmentCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    instruction: str = Field(min_length=1)
    max_score: float = Field(gt=0)
    max_attempts: Optional[int] = Field(default=None, ge=1)
    is_private: bool = False
    available_from: Optional[datetime] = None
    due_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _due_after_available(self):
        if self.available_from and self.due_at and self.due_at < self.available_from:
            raise ValueError("Due date must be after (or equal to) Available From.")
        return self


class AssignmentRead(BaseModel):
    id: int
    module_id: int
    name: str
    instruction: str
    max_score: float
    max_attempts: Optional[int] = None
    is_private: bool = False
    available_from: Optional[datetime] = None
    due_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True
