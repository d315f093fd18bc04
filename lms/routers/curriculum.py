import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from lms.core.current_user import Caller, get_caller
from lms.core.deps import get_db
from lms.core.permissions import ensure_can_manage, require_staff, require_teacher_record
from lms.models.assignment import Assignment
from lms.models.module import Module
from lms.models.quarter import Quarter
from lms.schemas.access import AccessRead, AccessUpdate
from lms.schemas.curriculum import AssignmentCreate, AssignmentRead, ModuleCreate, ModuleRead, QuarterRead
from lms.services import access
from lms.services.lookups import (
    assignment_owner_id,
    ensure_assignment_exists,
    ensure_module_exists,
    ensure_quarter_exists,
    module_owner_id,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/quarters", response_model=list[QuarterRead])
def my_quarters(
    db: Session = Depends(get_db),
    teacher: Caller = Depends(require_teacher_record),
):
    return (
        db.query(Quarter)
        .filter(Quarter.teacher_id == teacher.teacher_id)
        .order_by(Quarter.created_at.asc(), Quarter.id.asc())
        .all()
    )


@router.get("/quarters/{quarter_id}/modules", response_model=list[ModuleRead])
def list_modules(
    quarter_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_staff),
):
    quarter = ensure_quarter_exists(db, quarter_id)
    ensure_can_manage(caller, quarter.teacher_id, "Forbidden: not your quarter.")
    return (
        db.query(Module)
        .filter(Module.quarter_id == quarter_id)
        .order_by(Module.created_at.asc(), Module.id.asc())
        .all()
    )


@router.post(
    "/quarters/{quarter_id}/modules",
    response_model=ModuleRead,
    status_code=status.HTTP_201_CREATED,
)
def create_module(
    quarter_id: int,
    payload: ModuleCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_staff),
):
    quarter = ensure_quarter_exists(db, quarter_id)
    ensure_can_manage(caller, quarter.teacher_id, "Forbidden: not your quarter.")

    m = Module(
        quarter_id=quarter_id,
        title=payload.title.strip(),
        description=payload.description,
        is_private=payload.is_private,
    )
    db.add(m)
    db.commit()
    db.refresh(m)
    return m


@router.get("/modules/{module_id}/assignments", response_model=list[AssignmentRead])
def list_assignments(
    module_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    module = ensure_module_exists(db, module_id)
    viewer = access.ensure_can_view_module(db, module, caller)

    rows = (
        db.query(Assignment)
        .filter(Assignment.module_id == module_id)
        .order_by(Assignment.created_at.asc(), Assignment.id.asc())
        .all()
    )
    if viewer is None:
        return rows
    # students only see the private assignments they were given
    return [a for a in rows if access.student_can_open_assignment(db, a, viewer)]


@router.post(
    "/modules/{module_id}/assignments",
    response_model=AssignmentRead,
    status_code=status.HTTP_201_CREATED,
)
def create_assignment(
    module_id: int,
    payload: AssignmentCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_staff),
):
    module = ensure_module_exists(db, module_id)
    ensure_can_manage(caller, module_owner_id(db, module), "You do not own this module.")

    a = Assignment(
        module_id=module_id,
        name=payload.name.strip(),
        instruction=payload.instruction.strip(),
        max_score=payload.max_score,
        max_attempts=payload.max_attempts,
        is_private=payload.is_private,
        available_from=payload.available_from,
        due_at=payload.due_at,
    )
    db.add(a)
    db.commit()
    db.refresh(a)
    return a


@router.get("/modules/{module_id}/students", response_model=AccessRead)
def module_access(
    module_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_staff),
):
    module = ensure_module_exists(db, module_id)
    ensure_can_manage(caller, module_owner_id(db, module), "You do not own this module.")
    return {"is_private": module.is_private, "student_ids": access.module_access_ids(db, module.id)}


@router.put("/modules/{module_id}/students", response_model=AccessRead)
def replace_module_access(
    module_id: int,
    payload: AccessUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_staff),
):
    module = ensure_module_exists(db, module_id)
    owner_id = module_owner_id(db, module)
    ensure_can_manage(caller, owner_id, "You do not own this module.")

    ids = access.replace_module_access(db, module, owner_id, payload.student_ids, payload.is_private)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("module %s access list set to %d students", module.id, len(ids))
    return {"is_private": module.is_private, "student_ids": ids}


@router.get("/assignments/{assignment_id}/students", response_model=AccessRead)
def assignment_access(
    assignment_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_staff),
):
    assignment = ensure_assignment_exists(db, assignment_id)
    ensure_can_manage(caller, assignment_owner_id(db, assignment), "Forbidden: not your assignment.")
    return {"is_private": assignment.is_private, "student_ids": access.assignment_access_ids(db, assignment.id)}


@router.put("/assignments/{assignment_id}/students", response_model=AccessRead)
def replace_assignment_access(
    assignment_id: int,
    payload: AccessUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_staff),
):
    assignment = ensure_assignment_exists(db, assignment_id)
    owner_id = assignment_owner_id(db, assignment)
    ensure_can_manage(caller, owner_id, "Forbidden: not your assignment.")

    ids = access.replace_assignment_access(db, assignment, owner_id, payload.student_ids, payload.is_private)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("assignment %s access list set to %d students", assignment.id, len(ids))
    return {"is_private": assignment.is_private, "student_ids": ids}
