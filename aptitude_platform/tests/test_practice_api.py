"""Tests for the daily practice HTTP endpoints."""

from __future__ import annotations

from aptitude_app.services import assignment_service, question_oracle


def test_daily_questions_assigns_once(client, make_user, auth_headers, stub_oracle):
    user_id = make_user()
    headers = auth_headers(user_id)

    first = client.get("/api/practice/daily-questions", headers=headers)
    assert first.status_code == 200
    body = first.get_json()
    assert len(body["questions"]) == 10
    assert body["level"] == "Beginner"
    assert all(item["correct_index"] is None for item in body["questions"])
    assert all("hint" in item and item["hint"] is None for item in body["questions"])

    second = client.get("/api/practice/daily-questions", headers=headers)
    assert [q["id"] for q in second.get_json()["questions"]] == [q["id"] for q in body["questions"]]
    assert len(stub_oracle) == 2


def test_daily_questions_not_ready(client, make_user, auth_headers, monkeypatch):
    def _down(difficulty, count, category_hints=None):
        raise question_oracle.OracleError("down")

    monkeypatch.setattr(question_oracle, "generate_candidates", _down)
    resp = client.get("/api/practice/daily-questions", headers=auth_headers(make_user()))
    assert resp.status_code == 503
    assert resp.get_json()["error"] == "not_ready"


def test_attempt_flow_over_http(client, make_user, auth_headers, stub_oracle):
    user_id = make_user(score=500)
    headers = auth_headers(user_id)
    questions = client.get("/api/practice/daily-questions", headers=headers).get_json()["questions"]
    first, second = questions[0]["id"], questions[1]["id"]

    hint = client.post("/api/practice/use-hint", json={"question_id": first}, headers=headers)
    assert hint.status_code == 200
    assert hint.get_json()["status"] == "hint_used"
    assert hint.get_json()["hint"] == "Subtract the speeds."

    # Generated questions resolve "correct_answer": 1.
    submit = client.post(
        "/api/practice/submit-answer",
        json={"question_id": first, "selected_index": 1},
        headers=headers,
    )
    payload = submit.get_json()
    assert submit.status_code == 200
    assert payload["status"] == "correct"
    assert payload["points_earned"] == 90
    assert payload["score"] == 590

    again = client.post(
        "/api/practice/submit-answer",
        json={"question_id": first, "selected_index": 2},
        headers=headers,
    )
    assert again.status_code == 409
    assert again.get_json()["error"] == "attempt_closed"

    gave_up = client.post("/api/practice/give-up", json={"question_id": second}, headers=headers)
    assert gave_up.get_json()["status"] == "gave_up"
    assert gave_up.get_json()["correct_index"] == 1

    view = client.get("/api/practice/daily-questions", headers=headers).get_json()
    statuses = {item["id"]: item["status"] for item in view["questions"]}
    assert statuses[first] == "correct" and statuses[second] == "gave_up"
    assert view["score"] == 600


def test_attempt_on_unassigned_question(client, make_user, make_question, auth_headers, stub_oracle):
    user_id = make_user()
    headers = auth_headers(user_id)
    client.get("/api/practice/daily-questions", headers=headers)
    stray = make_question("Hard")
    resp = client.post("/api/practice/give-up", json={"question_id": stray}, headers=headers)
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "question_not_assigned"


def test_payload_validation(client, make_user, auth_headers):
    headers = auth_headers(make_user())
    resp = client.post(
        "/api/practice/submit-answer",
        json={"question_id": 1, "selected_index": 7},
        headers=headers,
    )
    assert resp.status_code == 400
    assert "selected_index" in resp.get_json()["errors"]

    resp = client.post("/api/practice/use-hint", json={}, headers=headers)
    assert resp.status_code == 400


def test_activate_and_status(client, make_user, auth_headers, stub_oracle, monkeypatch):
    user_id = make_user()
    headers = auth_headers(user_id)
    assert client.get("/api/practice/daily/status", headers=headers).get_json()["phase"] == "pending"

    started = []
    monkeypatch.setattr(
        assignment_service,
        "start_background_assignment",
        lambda uid: started.append(uid) or object(),
    )
    resp = client.post("/api/practice/daily/activate", headers=headers)
    assert resp.status_code == 202
    assert started == [user_id]


def test_activate_when_already_assigned(client, make_user, auth_headers, stub_oracle):
    user_id = make_user()
    headers = auth_headers(user_id)
    client.get("/api/practice/daily-questions", headers=headers)
    resp = client.post("/api/practice/daily/activate", headers=headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["phase"] == "complete"
    assert body["done"] == body["total"] == 10


def test_token_for_deleted_user_is_rejected(client, make_user, auth_headers):
    from aptitude_app.extensions import db
    from aptitude_app.models import User

    user_id = make_user()
    headers = auth_headers(user_id)
    db.session.delete(db.session.get(User, user_id))
    db.session.commit()
    resp = client.get("/api/practice/daily/status", headers=headers)
    assert resp.status_code == 404
