from pydantic import BaseModel, EmailStr, Field


class UserRead(BaseModel):
    id: int
    email: EmailStr
    full_name: str | None = None
    role: str

    class Config:
        from_attributes = True


class PasswordSet(BaseModel):
    password: str = Field(min_length=8, max_length=72)


class WhoAmI(BaseModel):
    user: UserRead
    role: str
    teacher_id: int | None = None
    student_id: int | None = None
