"""
Quiz scoring and attempt bookkeeping.

A question with one correct choice is single-answer; with several it is
multi-answer. Either way a question earns its points only when the selected
set equals the correct set exactly. There is no partial credit.
"""
from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional

from lms.models.quiz import Quiz, QuizQuestion


class InvalidAnswers(ValueError):
    pass


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def is_open(quiz: Quiz, now: datetime) -> bool:
    opens = as_utc(quiz.available_from)
    closes = as_utc(quiz.expires_at)
    if opens and now < opens:
        return False
    if closes and now > closes:
        return False
    return True


def is_multi(question: QuizQuestion) -> bool:
    return sum(1 for c in question.choices if c.is_correct) > 1


def normalize_answers(
    questions: Iterable[QuizQuestion],
    answers: Mapping[int, Iterable[int]],
) -> dict[str, list[int]]:
    """
    Check answers against the quiz and return them in stored form.

    Keys become strings (JSON object keys), choice ids are de-duplicated and
    sorted. Unanswered questions are simply absent.
    """
    by_id = {q.id: q for q in questions}
    out: dict[str, list[int]] = {}

    for qid, picked in answers.items():
        question = by_id.get(qid)
        if question is None:
            raise InvalidAnswers(f"Question {qid} is not part of this quiz")

        valid = {c.id for c in question.choices}
        chosen = sorted(set(picked))
        unknown = [cid for cid in chosen if cid not in valid]
        if unknown:
            raise InvalidAnswers(f"Choice {unknown[0]} does not belong to question {qid}")
        if len(chosen) > 1 and not is_multi(question):
            raise InvalidAnswers(f"Question {qid} takes a single answer")

        out[str(qid)] = chosen

    return out


def score_answers(questions: Iterable[QuizQuestion], answers: Mapping[str, list[int]]) -> float:
    total = 0.0
    for q in questions:
        correct = sorted(c.id for c in q.choices if c.is_correct)
        if answers.get(str(q.id), []) == correct:
            total += q.points
    return total


def duration_seconds(started_at: datetime, now: datetime) -> int:
    return max(1, int((now - as_utc(started_at)).total_seconds()))


def over_time(quiz: Quiz, started_at: datetime, now: datetime) -> bool:
    if not quiz.time_limit_minutes:
        return False
    return duration_seconds(started_at, now) > quiz.time_limit_minutes * 60
