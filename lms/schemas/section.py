from pydantic import BaseModel, Field


class SectionCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class SectionRead(BaseModel):
    id: int
    name: str
    teacher_id: int | None = None

    class Config:
        from_attributes = True
