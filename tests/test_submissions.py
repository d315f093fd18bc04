from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from lms.models.assignment import Assignment
from lms.models.submission import Submission


def login(client, email: str, password: str = "password123") -> str:
    r = client.post("/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return r.json()["access_token"]


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def test_each_submit_is_a_new_attempt(client, seed_data):
    student = login(client, "studentA@example.com")
    url = f"/assignments/{seed_data['assignment_id']}/submissions"

    r1 = client.post(url, headers=auth_header(student), json={"answer_text": "first"})
    assert r1.status_code == 201, r1.text
    r2 = client.post(url, headers=auth_header(student), json={"answer_text": "second"})
    assert r2.status_code == 201, r2.text

    assert r1.json()["attempt_number"] == 1
    assert r2.json()["attempt_number"] == 2
    assert r2.json()["id"] != r1.json()["id"]
    assert r2.json()["submitted_at"] is not None

    r = client.get(url + "/me", headers=auth_header(student))
    assert [s["answer_text"] for s in r.json()] == ["second", "first"]


def test_latest_attempt_shows_on_dashboard(client, seed_data):
    student = login(client, "studentA@example.com")
    url = f"/assignments/{seed_data['assignment_id']}/submissions"
    client.post(url, headers=auth_header(student), json={"answer_text": "first"})
    second = client.post(url, headers=auth_header(student), json={"answer_text": "second"}).json()

    teacher = login(client, "teacher1@example.com")
    r = client.get(
        "/progress/assignment",
        params={"assignment_id": seed_data["assignment_id"]},
        headers=auth_header(teacher),
    )
    latest = r.json()["latest_submissions"]
    assert [s["id"] for s in latest] == [second["id"]]
    assert r.json()["metrics"]["submitted"] == 1


def test_attempt_limit(client, seed_data):
    student = login(client, "studentA@example.com")
    url = f"/assignments/{seed_data['assignment_id']}/submissions"

    for i in range(3):
        r = client.post(url, headers=auth_header(student), json={"answer_text": f"try {i}"})
        assert r.status_code == 201, r.text

    r = client.post(url, headers=auth_header(student), json={"answer_text": "one more"})
    assert r.status_code == 409
    assert r.json()["detail"] == "Attempt limit reached (3)"


def test_empty_submission_is_rejected(client, seed_data):
    student = login(client, "studentA@example.com")
    r = client.post(
        f"/assignments/{seed_data['assignment_id']}/submissions",
        headers=auth_header(student),
        json={"answer_text": "   "},
    )
    assert r.status_code == 422


def test_file_only_submission(client, seed_data):
    student = login(client, "studentA@example.com")
    r = client.post(
        f"/assignments/{seed_data['assignment_id']}/submissions",
        headers=auth_header(student),
        json={"file_url": "submissions/1/1/work.pdf"},
    )
    assert r.status_code == 201, r.text
    assert r.json()["file_url"] == "submissions/1/1/work.pdf"


def test_cannot_submit_to_another_teachers_assignment(client, seed_data):
    student = login(client, "studentA@example.com")
    r = client.post(
        f"/assignments/{seed_data['other_assignment_id']}/submissions",
        headers=auth_header(student),
        json={"answer_text": "hello"},
    )
    assert r.status_code == 403


def test_teacher_cannot_submit(client, seed_data):
    teacher = login(client, "teacher1@example.com")
    r = client.post(
        f"/assignments/{seed_data['assignment_id']}/submissions",
        headers=auth_header(teacher),
        json={"answer_text": "hello"},
    )
    assert r.status_code == 403


def test_not_yet_available(client, seed_data):
    db = client.app.state.session_factory()
    try:
        a = db.query(Assignment).filter(Assignment.id == seed_data["assignment_id"]).first()
        a.available_from = datetime.now(timezone.utc) + timedelta(days=1)
        db.commit()
    finally:
        db.close()

    student = login(client, "studentA@example.com")
    r = client.post(
        f"/assignments/{seed_data['assignment_id']}/submissions",
        headers=auth_header(student),
        json={"answer_text": "early"},
    )
    assert r.status_code == 403
    assert r.json()["detail"] == "Assignment is not yet available"


def test_late_submission_is_accepted(client, seed_data):
    db = client.app.state.session_factory()
    try:
        a = db.query(Assignment).filter(Assignment.id == seed_data["assignment_id"]).first()
        a.due_at = datetime.now(timezone.utc) - timedelta(days=1)
        db.commit()
    finally:
        db.close()

    student = login(client, "studentA@example.com")
    r = client.post(
        f"/assignments/{seed_data['assignment_id']}/submissions",
        headers=auth_header(student),
        json={"answer_text": "late"},
    )
    assert r.status_code == 201, r.text


def test_attempt_number_collision_is_a_conflict(client, seed_data, make_submission):
    # a row already holds attempt 2 while only one attempt exists
    make_submission(seed_data["assignment_id"], seed_data["aquino_id"], datetime.now(timezone.utc), attempt_number=2)

    student = login(client, "studentA@example.com")
    url = f"/assignments/{seed_data['assignment_id']}/submissions"
    r = client.post(url, headers=auth_header(student), json={"answer_text": "again"})
    assert r.status_code == 409
    assert r.json()["detail"] == "Another attempt was saved at the same time; please submit again"

    r = client.get(url + "/me", headers=auth_header(student))
    assert [s["attempt_number"] for s in r.json()] == [2]


def test_attempt_numbers_are_unique_per_student(client, seed_data):
    db = client.app.state.session_factory()
    try:
        for _ in range(2):
            db.add(
                Submission(
                    assignment_id=seed_data["assignment_id"],
                    student_id=seed_data["bautista_id"],
                    attempt_number=1,
                    answer_text="dup",
                )
            )
        with pytest.raises(IntegrityError):
            db.commit()
        db.rollback()
    finally:
        db.close()


def test_private_assignment_needs_access_list(client, seed_data):
    teacher = login(client, "teacher1@example.com")
    student = login(client, "studentA@example.com")
    aid = seed_data["assignment_id"]

    r = client.put(
        f"/assignments/{aid}/students",
        headers=auth_header(teacher),
        json={"is_private": True, "student_ids": [seed_data["bautista_id"]]},
    )
    assert r.status_code == 200, r.text
    assert r.json() == {"is_private": True, "student_ids": [seed_data["bautista_id"]]}

    r = client.post(f"/assignments/{aid}/submissions", headers=auth_header(student), json={"answer_text": "hi"})
    assert r.status_code == 403
    assert r.json()["detail"] == "Assignment is not assigned to you"
    assert client.get(f"/assignments/{aid}/submissions/me", headers=auth_header(student)).status_code == 403

    r = client.get(f"/modules/{seed_data['module_id']}/assignments", headers=auth_header(student))
    assert r.status_code == 200
    assert r.json() == []

    # the owner still sees it
    r = client.get(f"/modules/{seed_data['module_id']}/assignments", headers=auth_header(teacher))
    assert [a["is_private"] for a in r.json()] == [True]

    r = client.put(
        f"/assignments/{aid}/students",
        headers=auth_header(teacher),
        json={"student_ids": [seed_data["aquino_id"], seed_data["bautista_id"]]},
    )
    assert r.json()["student_ids"] == sorted([seed_data["aquino_id"], seed_data["bautista_id"]])

    r = client.post(f"/assignments/{aid}/submissions", headers=auth_header(student), json={"answer_text": "hi"})
    assert r.status_code == 201, r.text

    r = client.get(f"/assignments/{aid}/students", headers=auth_header(teacher))
    assert r.json() == {
        "is_private": True,
        "student_ids": sorted([seed_data["aquino_id"], seed_data["bautista_id"]]),
    }


def test_public_assignment_ignores_access_list(client, seed_data):
    teacher = login(client, "teacher1@example.com")
    aid = seed_data["assignment_id"]
    client.put(
        f"/assignments/{aid}/students",
        headers=auth_header(teacher),
        json={"student_ids": [seed_data["bautista_id"]]},
    )

    student = login(client, "studentA@example.com")
    r = client.post(f"/assignments/{aid}/submissions", headers=auth_header(student), json={"answer_text": "hi"})
    assert r.status_code == 201


def test_private_module_hides_its_assignments(client, seed_data):
    teacher = login(client, "teacher1@example.com")
    student = login(client, "studentA@example.com")
    mid = seed_data["module_id"]

    r = client.put(f"/modules/{mid}/students", headers=auth_header(teacher), json={"is_private": True})
    assert r.status_code == 200, r.text
    assert r.json() == {"is_private": True, "student_ids": []}

    r = client.get(f"/modules/{mid}/assignments", headers=auth_header(student))
    assert r.status_code == 403
    assert r.json()["detail"] == "Module is not assigned to you"

    r = client.post(
        f"/assignments/{seed_data['assignment_id']}/submissions",
        headers=auth_header(student),
        json={"answer_text": "hi"},
    )
    assert r.status_code == 403

    client.put(f"/modules/{mid}/students", headers=auth_header(teacher), json={"student_ids": [seed_data["aquino_id"]]})

    r = client.get(f"/modules/{mid}/assignments", headers=auth_header(student))
    assert [a["name"] for a in r.json()] == ["Worksheet 1"]


def test_access_list_only_takes_own_roster(client, seed_data):
    teacher = login(client, "teacher1@example.com")
    r = client.put(
        f"/assignments/{seed_data['assignment_id']}/students",
        headers=auth_header(teacher),
        json={"student_ids": [seed_data["aquino_id"], seed_data["diaz_id"]]},
    )
    assert r.status_code == 400
    assert r.json()["detail"] == f"Students not on this roster: {seed_data['diaz_id']}"

    r = client.get(f"/assignments/{seed_data['assignment_id']}/students", headers=auth_header(teacher))
    assert r.json()["student_ids"] == []


def test_access_list_is_owner_or_admin_only(client, seed_data):
    other = login(client, "teacher2@example.com")
    aid = seed_data["assignment_id"]

    r = client.put(f"/assignments/{aid}/students", headers=auth_header(other), json={"student_ids": []})
    assert r.status_code == 403
    r = client.get(f"/modules/{seed_data['module_id']}/students", headers=auth_header(other))
    assert r.status_code == 403

    student = login(client, "studentA@example.com")
    assert client.get(f"/assignments/{aid}/students", headers=auth_header(student)).status_code == 403

    admin = login(client, "admin@example.com")
    r = client.put(
        f"/assignments/{aid}/students",
        headers=auth_header(admin),
        json={"is_private": True, "student_ids": [seed_data["cruz_id"]]},
    )
    assert r.status_code == 200
    assert r.json()["student_ids"] == [seed_data["cruz_id"]]
