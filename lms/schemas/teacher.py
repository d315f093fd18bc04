from pydantic import BaseModel, EmailStr, Field


class TeacherCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8, max_length=72)
    first_name: str = Field(min_length=1, max_length=100)
    middle_name: str | None = None
    last_name: str = Field(min_length=1, max_length=100)


class TeacherUpdate(BaseModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    middle_name: str | None = None
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    email: EmailStr | None = None


class TeacherRead(BaseModel):
    id: int
    user_id: int
    first_name: str
    middle_name: str | None = None
    last_name: str

    class Config:
        from_attributes = True
