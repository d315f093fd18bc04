from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from lms.models.quiz import QuizAttempt
from lms.services import quiz as quiz_service


def login(client, email: str, password: str = "password123") -> str:
    r = client.post("/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return r.json()["access_token"]


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def quiz_payload(**overrides) -> dict:
    body = {
        "title": "Fractions check",
        "max_attempts": 2,
        "is_published": True,
        "questions": [
            {
                "question_text": "1/2 + 1/4 = ?",
                "points": 2,
                "choices": [
                    {"text": "3/4", "correct": True},
                    {"text": "2/6"},
                    {"text": "1/8"},
                ],
            },
            {
                "question_text": "Which equal 1/2?",
                "choices": [
                    {"text": "2/4", "correct": True},
                    {"text": "3/6", "correct": True},
                    {"text": "2/3"},
                ],
            },
        ],
    }
    body.update(overrides)
    return body


@pytest.fixture()
def teacher(client):
    return login(client, "teacher1@example.com")


@pytest.fixture()
def student(client):
    return login(client, "studentA@example.com")


@pytest.fixture()
def make_quiz(client, seed_data, teacher):
    def _make(**overrides) -> dict:
        r = client.post(
            f"/modules/{seed_data['module_id']}/quizzes",
            headers=auth_header(teacher),
            json=quiz_payload(**overrides),
        )
        assert r.status_code == 201, r.text
        return r.json()

    return _make


def correct_answers(quiz: dict) -> dict:
    return {
        str(q["id"]): [c["id"] for c in q["choices"] if c["is_correct"]]
        for q in quiz["questions"]
    }


# ---- scoring -------------------------------------------------------------

def _question(qid, points, correct, wrong):
    choices = [SimpleNamespace(id=c, is_correct=True) for c in correct]
    choices += [SimpleNamespace(id=c, is_correct=False) for c in wrong]
    return SimpleNamespace(id=qid, points=points, choices=choices)


def test_score_needs_exact_choice_set():
    questions = [
        _question(1, 2, correct=[10], wrong=[11, 12]),
        _question(2, 1, correct=[20, 21], wrong=[22]),
    ]

    assert quiz_service.score_answers(questions, {"1": [10], "2": [20, 21]}) == 3
    assert quiz_service.score_answers(questions, {"1": [10], "2": [20]}) == 2
    assert quiz_service.score_answers(questions, {"2": [20, 21]}) == 1
    assert quiz_service.score_answers(questions, {"1": [10, 11]}) == 0
    assert quiz_service.score_answers(questions, {}) == 0


def test_normalize_answers():
    questions = [
        _question(1, 1, correct=[10], wrong=[11]),
        _question(2, 1, correct=[20, 21], wrong=[22]),
    ]

    assert quiz_service.normalize_answers(questions, {2: [21, 20, 21], 1: [11]}) == {"2": [20, 21], "1": [11]}

    with pytest.raises(quiz_service.InvalidAnswers):
        quiz_service.normalize_answers(questions, {3: [10]})
    with pytest.raises(quiz_service.InvalidAnswers):
        quiz_service.normalize_answers(questions, {1: [20]})
    with pytest.raises(quiz_service.InvalidAnswers):
        quiz_service.normalize_answers(questions, {1: [10, 11]})


def test_quiz_window():
    now = datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc)
    quiz = SimpleNamespace(available_from=None, expires_at=None)
    assert quiz_service.is_open(quiz, now)

    quiz.available_from = (now + timedelta(minutes=1)).replace(tzinfo=None)
    assert not quiz_service.is_open(quiz, now)

    quiz.available_from = now - timedelta(days=1)
    quiz.expires_at = now - timedelta(seconds=1)
    assert not quiz_service.is_open(quiz, now)


# ---- teacher side --------------------------------------------------------

def test_teacher_creates_quiz(client, make_quiz):
    quiz = make_quiz()

    assert quiz["type"] == "quiz"
    assert quiz["total_points"] == 3
    assert [q["order_index"] for q in quiz["questions"]] == [1, 2]
    assert [q["multi"] for q in quiz["questions"]] == [False, True]
    assert [c["is_correct"] for c in quiz["questions"][0]["choices"]] == [True, False, False]


def test_quiz_validation(client, seed_data, teacher):
    url = f"/modules/{seed_data['module_id']}/quizzes"

    bad_questions = [
        [],
        [{"question_text": "Q", "choices": [{"text": "only", "correct": True}]}],
        [{"question_text": "Q", "choices": [{"text": "a"}, {"text": "b"}]}],
    ]
    for questions in bad_questions:
        r = client.post(url, headers=auth_header(teacher), json=quiz_payload(questions=questions))
        assert r.status_code == 422

    r = client.post(
        url,
        headers=auth_header(teacher),
        json=quiz_payload(available_from="2026-05-02T00:00:00Z", expires_at="2026-05-01T00:00:00Z"),
    )
    assert r.status_code == 422


def test_one_pre_test_per_module(client, make_quiz, seed_data, teacher):
    make_quiz(type="pre_test")

    r = client.post(
        f"/modules/{seed_data['module_id']}/quizzes",
        headers=auth_header(teacher),
        json=quiz_payload(type="pre_test"),
    )
    assert r.status_code == 409
    assert r.json()["detail"] == "This module already has a Pre-Test."

    # plain quizzes are not limited
    make_quiz()
    make_quiz()


def test_quiz_creation_requires_ownership(client, seed_data):
    other = login(client, "teacher2@example.com")
    r = client.post(
        f"/modules/{seed_data['module_id']}/quizzes",
        headers=auth_header(other),
        json=quiz_payload(),
    )
    assert r.status_code == 403


# ---- student side --------------------------------------------------------

def test_student_sees_published_quiz_without_answers(client, make_quiz, seed_data, student):
    published = make_quiz()
    make_quiz(title="Draft", is_published=False)

    r = client.get(f"/modules/{seed_data['module_id']}/quizzes", headers=auth_header(student))
    assert r.status_code == 200
    assert [q["id"] for q in r.json()] == [published["id"]]

    r = client.get(f"/quizzes/{published['id']}", headers=auth_header(student))
    assert r.status_code == 200
    for q in r.json()["questions"]:
        assert all(c["is_correct"] is None for c in q["choices"])


def test_take_quiz_and_score(client, make_quiz, student, teacher):
    quiz = make_quiz()

    r = client.post(f"/quizzes/{quiz['id']}/attempts", headers=auth_header(student))
    assert r.status_code == 201, r.text
    attempt = r.json()
    assert attempt["attempt_number"] == 1
    assert attempt["submitted_at"] is None

    r = client.post(
        f"/quiz-attempts/{attempt['id']}/submit",
        headers=auth_header(student),
        json={"answers": correct_answers(quiz)},
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["score"] == 3
    assert body["submitted_at"] is not None
    assert body["duration_seconds"] >= 1
    assert body["auto_submitted"] is False

    # second attempt, only the first question right
    first_q = quiz["questions"][0]
    second = client.post(f"/quizzes/{quiz['id']}/attempts", headers=auth_header(student)).json()
    assert second["attempt_number"] == 2
    r = client.post(
        f"/quiz-attempts/{second['id']}/submit",
        headers=auth_header(student),
        json={"answers": {str(first_q["id"]): [first_q["choices"][0]["id"]]}},
    )
    assert r.json()["score"] == 2

    r = client.get(f"/quizzes/{quiz['id']}/attempts/me", headers=auth_header(student))
    assert [(a["attempt_number"], a["score"]) for a in r.json()] == [(2, 2), (1, 3)]

    r = client.get(f"/quizzes/{quiz['id']}/attempts", headers=auth_header(teacher))
    assert [a["attempt_number"] for a in r.json()] == [1, 2]


def test_quiz_attempt_limit(client, make_quiz, student):
    quiz = make_quiz(max_attempts=1)

    assert client.post(f"/quizzes/{quiz['id']}/attempts", headers=auth_header(student)).status_code == 201
    r = client.post(f"/quizzes/{quiz['id']}/attempts", headers=auth_header(student))
    assert r.status_code == 409
    assert r.json()["detail"] == "Attempt limit reached (1)"


def test_attempt_is_submitted_once(client, make_quiz, student):
    quiz = make_quiz()
    attempt = client.post(f"/quizzes/{quiz['id']}/attempts", headers=auth_header(student)).json()
    url = f"/quiz-attempts/{attempt['id']}/submit"

    assert client.post(url, headers=auth_header(student), json={"answers": {}}).status_code == 200
    r = client.post(url, headers=auth_header(student), json={"answers": correct_answers(quiz)})
    assert r.status_code == 409


def test_foreign_answers_are_rejected(client, make_quiz, student):
    quiz = make_quiz()
    other = make_quiz(title="Other")
    attempt = client.post(f"/quizzes/{quiz['id']}/attempts", headers=auth_header(student)).json()

    r = client.post(
        f"/quiz-attempts/{attempt['id']}/submit",
        headers=auth_header(student),
        json={"answers": correct_answers(other)},
    )
    assert r.status_code == 400


def test_late_submission_is_marked_automatic(client, make_quiz, student):
    quiz = make_quiz(time_limit_minutes=5)
    attempt = client.post(f"/quizzes/{quiz['id']}/attempts", headers=auth_header(student)).json()

    db = client.app.state.session_factory()
    try:
        row = db.query(QuizAttempt).filter(QuizAttempt.id == attempt["id"]).first()
        row.started_at = datetime.now(timezone.utc) - timedelta(minutes=10)
        db.commit()
    finally:
        db.close()

    r = client.post(
        f"/quiz-attempts/{attempt['id']}/submit",
        headers=auth_header(student),
        json={"answers": correct_answers(quiz)},
    )
    assert r.status_code == 200
    assert r.json()["auto_submitted"] is True
    assert r.json()["score"] == 3


def test_unpublished_or_closed_quiz_cannot_start(client, make_quiz, student, teacher):
    draft = make_quiz(is_published=False)
    r = client.post(f"/quizzes/{draft['id']}/attempts", headers=auth_header(student))
    assert r.status_code == 403
    assert r.json()["detail"] == "Quiz is not published"

    r = client.patch(f"/quizzes/{draft['id']}", headers=auth_header(teacher), json={"is_published": True})
    assert r.status_code == 200
    assert r.json()["is_published"] is True
    assert client.post(f"/quizzes/{draft['id']}/attempts", headers=auth_header(student)).status_code == 201

    closed = make_quiz(expires_at=(datetime.now(timezone.utc) - timedelta(hours=1)).isoformat())
    r = client.post(f"/quizzes/{closed['id']}/attempts", headers=auth_header(student))
    assert r.status_code == 403
    assert r.json()["detail"] == "Quiz is not open"


def test_private_module_blocks_quiz(client, make_quiz, seed_data, student, teacher):
    quiz = make_quiz()
    client.put(f"/modules/{seed_data['module_id']}/students", headers=auth_header(teacher), json={"is_private": True})

    assert client.get(f"/quizzes/{quiz['id']}", headers=auth_header(student)).status_code == 403
    assert client.post(f"/quizzes/{quiz['id']}/attempts", headers=auth_header(student)).status_code == 403


def test_student_cannot_submit_someone_elses_attempt(client, make_quiz, seed_data, student):
    quiz = make_quiz()
    db = client.app.state.session_factory()
    try:
        row = QuizAttempt(
            quiz_id=quiz["id"],
            student_id=seed_data["bautista_id"],
            attempt_number=1,
            started_at=datetime.now(timezone.utc),
        )
        db.add(row)
        db.commit()
        attempt_id = row.id
    finally:
        db.close()

    r = client.post(f"/quiz-attempts/{attempt_id}/submit", headers=auth_header(student), json={"answers": {}})
    assert r.status_code == 403
