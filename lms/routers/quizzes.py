import logging
import random
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lms.core.current_user import Caller, get_caller
from lms.core.deps import get_db
from lms.core.permissions import ensure_can_manage, require_staff, require_student
from lms.models.quiz import Quiz, QuizAttempt, QuizChoice, QuizQuestion
from lms.schemas.quiz import (
    QuizAnswers,
    QuizAttemptRead,
    QuizCreate,
    QuizDetail,
    QuizSummary,
    QuizUpdate,
)
from lms.services import access
from lms.services import quiz as quiz_service
from lms.services.lookups import (
    ensure_module_exists,
    ensure_quiz_attempt_exists,
    ensure_quiz_exists,
    module_owner_id,
    quiz_owner_id,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_SINGLETON_LABELS = {"pre_test": "Pre-Test", "post_test": "Post-Test"}


def _detail(quiz: Quiz, reveal: bool, shuffle: bool = False) -> dict:
    """Serialize a quiz; correct answers only when ``reveal`` is set."""
    questions = []
    for q in quiz.questions:
        choices = [
            {
                "id": c.id,
                "order_index": c.order_index,
                "choice_text": c.choice_text,
                "is_correct": c.is_correct if reveal else None,
            }
            for c in q.choices
        ]
        if shuffle:
            random.shuffle(choices)
        questions.append(
            {
                "id": q.id,
                "order_index": q.order_index,
                "question_text": q.question_text,
                "instruction_text": q.instruction_text,
                "points": q.points,
                "multi": quiz_service.is_multi(q),
                "choices": choices,
            }
        )
    if shuffle:
        random.shuffle(questions)

    data = QuizSummary.model_validate(quiz).model_dump()
    data["questions"] = questions
    return data


def _commit(db: Session) -> None:
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise


@router.post(
    "/modules/{module_id}/quizzes",
    response_model=QuizDetail,
    status_code=status.HTTP_201_CREATED,
)
def create_quiz(
    module_id: int,
    payload: QuizCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_staff),
):
    module = ensure_module_exists(db, module_id)
    ensure_can_manage(caller, module_owner_id(db, module), "You do not own this module.")

    # only one pre-test and one post-test per module
    if payload.type in _SINGLETON_LABELS:
        existing = db.query(Quiz).filter(Quiz.module_id == module_id, Quiz.type == payload.type).first()
        if existing:
            raise HTTPException(
                status_code=409,
                detail=f"This module already has a {_SINGLETON_LABELS[payload.type]}.",
            )

    quiz = Quiz(
        module_id=module_id,
        title=payload.title.strip(),
        type=payload.type,
        max_attempts=payload.max_attempts,
        time_limit_minutes=payload.time_limit_minutes,
        available_from=payload.available_from,
        expires_at=payload.expires_at,
        shuffle=payload.shuffle,
        is_published=payload.is_published,
    )
    for i, draft in enumerate(payload.questions, start=1):
        question = QuizQuestion(
            order_index=i,
            question_text=draft.question_text,
            instruction_text=draft.instruction_text.strip() if draft.instruction_text else None,
            points=draft.points,
        )
        question.choices = [
            QuizChoice(order_index=j, choice_text=c.text.strip(), is_correct=c.correct)
            for j, c in enumerate(draft.choices, start=1)
        ]
        quiz.questions.append(question)

    db.add(quiz)
    _commit(db)
    db.refresh(quiz)

    logger.info("quiz %s (%s) created in module %s", quiz.id, quiz.type, module_id)
    return _detail(quiz, reveal=True)


@router.get("/modules/{module_id}/quizzes", response_model=list[QuizSummary])
def list_quizzes(
    module_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    module = ensure_module_exists(db, module_id)
    viewer = access.ensure_can_view_module(db, module, caller)

    q = db.query(Quiz).filter(Quiz.module_id == module_id)
    if viewer is not None:
        q = q.filter(Quiz.is_published.is_(True))
    return q.order_by(Quiz.created_at.asc(), Quiz.id.asc()).all()


@router.get("/quizzes/{quiz_id}", response_model=QuizDetail)
def get_quiz(
    quiz_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller),
):
    quiz = ensure_quiz_exists(db, quiz_id)
    module = ensure_module_exists(db, quiz.module_id)
    viewer = access.ensure_can_view_module(db, module, caller)

    if viewer is None:
        return _detail(quiz, reveal=True)

    if not quiz.is_published:
        raise HTTPException(status_code=403, detail="Quiz is not published")
    return _detail(quiz, reveal=False, shuffle=quiz.shuffle)


@router.patch("/quizzes/{quiz_id}", response_model=QuizSummary)
def update_quiz(
    quiz_id: int,
    payload: QuizUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_staff),
):
    quiz = ensure_quiz_exists(db, quiz_id)
    ensure_can_manage(caller, quiz_owner_id(db, quiz), "You do not own this quiz.")

    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and field in ("title", "max_attempts", "is_published"):
            continue
        if field == "title":
            value = value.strip()
        setattr(quiz, field, value)

    _commit(db)
    db.refresh(quiz)
    return quiz


@router.post(
    "/quizzes/{quiz_id}/attempts",
    response_model=QuizAttemptRead,
    status_code=status.HTTP_201_CREATED,
)
def start_attempt(
    quiz_id: int,
    db: Session = Depends(get_db),
    me: Caller = Depends(require_student),
):
    quiz = ensure_quiz_exists(db, quiz_id)
    module = ensure_module_exists(db, quiz.module_id)
    student = access.ensure_student_module_access(db, module, me)

    if not quiz.is_published:
        raise HTTPException(status_code=403, detail="Quiz is not published")

    now = datetime.now(timezone.utc)
    if not quiz_service.is_open(quiz, now):
        raise HTTPException(status_code=403, detail="Quiz is not open")

    used, last = (
        db.query(func.count(QuizAttempt.id), func.max(QuizAttempt.attempt_number))
        .filter(QuizAttempt.quiz_id == quiz_id, QuizAttempt.student_id == student.id)
        .one()
    )
    if used >= quiz.max_attempts:
        raise HTTPException(status_code=409, detail=f"Attempt limit reached ({quiz.max_attempts})")

    attempt = QuizAttempt(
        quiz_id=quiz_id,
        student_id=student.id,
        attempt_number=(last or 0) + 1,
        started_at=now,
    )
    db.add(attempt)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=409,
            detail="Another attempt was started at the same time; please try again",
        )

    db.refresh(attempt)
    logger.info("student %s started attempt %s of quiz %s", student.id, attempt.attempt_number, quiz_id)
    return attempt


@router.post("/quiz-attempts/{attempt_id}/submit", response_model=QuizAttemptRead)
def submit_attempt(
    attempt_id: int,
    payload: QuizAnswers,
    db: Session = Depends(get_db),
    me: Caller = Depends(require_student),
):
    attempt = ensure_quiz_attempt_exists(db, attempt_id)
    if attempt.student_id != me.student_id:
        raise HTTPException(status_code=403, detail="Not your attempt")
    if attempt.submitted_at is not None:
        raise HTTPException(status_code=409, detail="Attempt already submitted")

    quiz = ensure_quiz_exists(db, attempt.quiz_id)
    try:
        answers = quiz_service.normalize_answers(quiz.questions, payload.answers)
    except quiz_service.InvalidAnswers as e:
        raise HTTPException(status_code=400, detail=str(e))

    now = datetime.now(timezone.utc)
    attempt.answers = answers
    attempt.score = quiz_service.score_answers(quiz.questions, answers)
    attempt.submitted_at = now
    attempt.duration_seconds = quiz_service.duration_seconds(attempt.started_at, now)
    # past the time limit counts as the timer's own submission
    attempt.auto_submitted = payload.auto_submitted or quiz_service.over_time(quiz, attempt.started_at, now)

    _commit(db)
    db.refresh(attempt)

    logger.info("quiz attempt %s submitted, score %s/%s", attempt.id, attempt.score, quiz.total_points)
    return attempt


@router.get("/quizzes/{quiz_id}/attempts/me", response_model=list[QuizAttemptRead])
def my_attempts(
    quiz_id: int,
    db: Session = Depends(get_db),
    me: Caller = Depends(require_student),
):
    quiz = ensure_quiz_exists(db, quiz_id)
    module = ensure_module_exists(db, quiz.module_id)
    student = access.ensure_student_module_access(db, module, me)

    return (
        db.query(QuizAttempt)
        .filter(QuizAttempt.quiz_id == quiz_id, QuizAttempt.student_id == student.id)
        .order_by(QuizAttempt.attempt_number.desc())
        .all()
    )


@router.get("/quizzes/{quiz_id}/attempts", response_model=list[QuizAttemptRead])
def quiz_attempts(
    quiz_id: int,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_staff),
):
    quiz = ensure_quiz_exists(db, quiz_id)
    ensure_can_manage(caller, quiz_owner_id(db, quiz), "You do not own this quiz.")

    return (
        db.query(QuizAttempt)
        .filter(QuizAttempt.quiz_id == quiz_id)
        .order_by(QuizAttempt.student_id.asc(), QuizAttempt.attempt_number.asc())
        .all()
    )
