from typing import Optional

from pydantic import BaseModel


class AccessUpdate(BaseModel):
    # the complete list; students left out lose access
    student_ids: list[int] = []
    is_private: Optional[bool] = None


class AccessRead(BaseModel):
    is_private: bool
    student_ids: list[int]
