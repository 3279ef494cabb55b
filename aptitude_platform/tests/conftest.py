"""Pytest configuration for ensuring project modules resolve correctly."""

from __future__ import annotations

import itertools
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest

from aptitude_app import create_app
from aptitude_app.extensions import db
from aptitude_app.models import Question, User
from aptitude_app.utils.security import generate_access_token

_counter = itertools.count(1)


@pytest.fixture()
def app_with_db():
    app = create_app("test")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app_with_db):
    return app_with_db.test_client()


@pytest.fixture()
def make_user(app_with_db):
    def _make(level: str = "Beginner", score: int = 0, **fields) -> int:
        n = next(_counter)
        user = User(
            email=fields.pop("email", f"student{n}@example.com"),
            username=fields.pop("username", f"student{n}"),
            level=level,
            score=score,
            **fields,
        )
        db.session.add(user)
        db.session.commit()
        return user.id

    return _make


@pytest.fixture()
def make_question(app_with_db):
    def _make(difficulty: str = "Easy", correct_index: int = 1, **fields) -> int:
        n = next(_counter)
        question = Question(
            qid=fields.pop("qid", f"Qseed{n:06d}"),
            question_text=fields.pop("question_text", f"Seed question {n}?"),
            options=fields.pop("options", ["10", "20", "30", "40"]),
            correct_index=correct_index,
            difficulty=difficulty,
            category=fields.pop("category", "Quantitative Aptitude"),
            hint=fields.pop("hint", "Think about ratios."),
            explanation=fields.pop("explanation", "Because 20 is twice 10."),
            **fields,
        )
        db.session.add(question)
        db.session.commit()
        return question.id

    return _make


@pytest.fixture()
def auth_headers(app_with_db):
    def _headers(user_id: int) -> dict:
        user = db.session.get(User, user_id)
        return {"Authorization": f"Bearer {generate_access_token(user)}"}

    return _headers


def fake_candidate(difficulty: str, n: int, /, **overrides) -> dict:
    record = {
        "question_text": f"Generated {difficulty} question {n}?",
        "options": ["12 km/h", "15 km/h", "18 km/h", "20 km/h"],
        "correct_answer": 1,
        "explanation": "Relative speed is the difference of speeds.",
        "hint": "Subtract the speeds.",
        "category": "Quantitative Aptitude",
        "difficulty": difficulty,
    }
    record.update(overrides)
    return record


@pytest.fixture()
def stub_oracle(monkeypatch):
    """Replace the oracle with a deterministic generator and record calls."""

    calls: list[tuple[str, int]] = []

    def _generate(difficulty, count, category_hints=None):
        calls.append((difficulty, count))
        return [fake_candidate(difficulty, next(_counter)) for _ in range(count)]

    monkeypatch.setattr("aptitude_app.services.question_oracle.generate_candidates", _generate)
    return calls


@pytest.fixture()
def candidate():
    return fake_candidate
