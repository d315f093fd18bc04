from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from lms.core.current_user import Caller
from lms.core.deps import get_db
from lms.core.permissions import require_staff
from lms.models.section import Section
from lms.schemas.section import SectionCreate, SectionRead

router = APIRouter()


@router.get("", response_model=list[SectionRead])
def list_sections(
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_staff),
):
    q = db.query(Section)
    if not caller.is_admin:
        # shared sections plus the teacher's own
        q = q.filter(or_(Section.teacher_id.is_(None), Section.teacher_id == caller.teacher_id))
    return q.order_by(Section.name.asc(), Section.id.asc()).all()


@router.post("", response_model=SectionRead, status_code=status.HTTP_201_CREATED)
def create_section(
    payload: SectionCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_staff),
):
    if not caller.is_admin and caller.teacher_id is None:
        raise HTTPException(status_code=403, detail="Teacher record not found")

    section = Section(
        name=payload.name.strip(),
        teacher_id=None if caller.is_admin else caller.teacher_id,
    )
    db.add(section)
    db.commit()
    db.refresh(section)
    return section
