from pydantic import BaseModel, EmailStr, Field, model_validator


class StudentCreate(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    middle_name: str | None = None
    last_name: str = Field(min_length=1, max_length=100)
    lrn: str | None = Field(default=None, max_length=20)
    section_id: int | None = None

    # optional login for the student portal
    email: EmailStr | None = None
    password: str | None = Field(default=None, min_length=8, max_length=72)

    @model_validator(mode="after")
    def _login_needs_both(self):
        if (self.email is None) != (self.password is None):
            raise ValueError("email and password must be given together")
        return self


class AdminStudentCreate(StudentCreate):
    teacher_id: int


class StudentUpdate(BaseModel):
    first_name: str | None = Field(default=None, min_length=1, max_length=100)
    middle_name: str | None = None
    last_name: str | None = Field(default=None, min_length=1, max_length=100)
    lrn: str | None = Field(default=None, max_length=20)
    section_id: int | None = None


class StudentRead(BaseModel):
    id: int
    user_id: int | None = None
    teacher_id: int
    section_id: int | None = None
    first_name: str
    middle_name: str | None = None
    last_name: str
    lrn: str | None = None

    class Config:
        from_attributes = True
