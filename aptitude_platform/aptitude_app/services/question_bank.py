"""Question bank access: reuse lookups, candidate persistence, seen history."""

from __future__ import annotations

import secrets
import string
from datetime import date
from typing import Any, Iterable, List, Mapping, Sequence, Set

from flask import current_app
from marshmallow import ValidationError
from sqlalchemy import func, select

from ..extensions import db
from ..models import Question, UserSeenQuestion
from ..schemas import OracleCandidateSchema
from .answer_normalizer import RULE_FALLBACK, report_fallback, resolve_answer_index

candidate_schema = OracleCandidateSchema()

QID_PREFIX = "Q"
QID_LENGTH = 10
_QID_ALPHABET = string.ascii_letters + string.digits + "_-"


class InvalidCandidate(ValueError):
    """An oracle record failed validation and was not stored."""

    def __init__(self, message: str, errors: Mapping[str, Any] | None = None):
        super().__init__(message)
        self.errors = dict(errors or {})


def generate_qid() -> str:
    token = "".join(secrets.choice(_QID_ALPHABET) for _ in range(QID_LENGTH))
    return f"{QID_PREFIX}{token}"


def reuse(
    difficulty: str,
    exclude_ids: Iterable[int],
    limit: int,
    *,
    seen_by_user: int | None = None,
) -> List[int]:
    """Return up to ``limit`` random bank IDs of ``difficulty``."""
    if limit <= 0:
        return []
    stmt = select(Question.id).where(Question.difficulty == difficulty)
    excluded = [int(qid) for qid in exclude_ids]
    if excluded:
        stmt = stmt.where(Question.id.not_in(excluded))
    if seen_by_user is not None:
        seen = (
            select(UserSeenQuestion.id)
            .where(
                UserSeenQuestion.user_id == seen_by_user,
                UserSeenQuestion.question_id == Question.id,
            )
            .exists()
        )
        stmt = stmt.where(~seen)
    stmt = stmt.order_by(func.random()).limit(limit)
    return list(db.session.execute(stmt).scalars())


def persist(
    candidate: Mapping[str, Any],
    *,
    difficulty: str | None = None,
    generated_for: date | None = None,
) -> int:
    """Validate one oracle record and store it as a new bank question."""
    if not isinstance(candidate, Mapping):
        raise InvalidCandidate("Candidate is not an object")
    payload = dict(candidate)
    if difficulty:
        payload["difficulty"] = difficulty
    try:
        data = candidate_schema.load(payload)
    except ValidationError as exc:
        raise InvalidCandidate("Candidate failed validation", exc.messages) from exc

    raw_answer = data["correct_answer"]
    correct_index, rule = resolve_answer_index(raw_answer, data["options"])
    qid = generate_qid()
    if rule == RULE_FALLBACK:
        report_fallback(raw_answer, data["options"], qid=qid)

    question = Question(
        qid=qid,
        question_text=data["question_text"],
        options=list(data["options"]),
        correct_index=correct_index,
        difficulty=data["difficulty"],
        category=data["category"],
        hint=data["hint"],
        explanation=data["explanation"],
        generated_for_date=generated_for,
        metadata_json={
            "source": "oracle",
            "raw_correct_answer": raw_answer if isinstance(raw_answer, (int, str)) else repr(raw_answer),
            "answer_rule": rule,
        },
    )
    db.session.add(question)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return question.id


def seen_question_ids(user_id: int) -> Set[int]:
    stmt = select(UserSeenQuestion.question_id).where(UserSeenQuestion.user_id == user_id)
    return set(db.session.execute(stmt).scalars())


def mark_seen(user_id: int, question_ids: Sequence[int]) -> int:
    """Add missing seen rows for ``question_ids``; the caller commits."""
    already = seen_question_ids(user_id)
    added = 0
    for question_id in dict.fromkeys(question_ids):
        if question_id in already:
            continue
        db.session.add(UserSeenQuestion(user_id=user_id, question_id=question_id))
        added += 1
    if added:
        current_app.logger.debug("Marked %s questions seen for user %s", added, user_id)
    return added


def claim_seen(user_id: int, question_ids: Sequence[int]) -> None:
    """Insert seen rows for every id in ``question_ids``; the caller commits.

    Unlike :func:`mark_seen` nothing is skipped, so an id that another run
    already handed to this user makes the commit fail on
    ``uq_user_seen_question``.
    """
    for question_id in dict.fromkeys(question_ids):
        db.session.add(UserSeenQuestion(user_id=user_id, question_id=question_id))
