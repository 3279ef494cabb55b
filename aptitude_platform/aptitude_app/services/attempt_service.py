"""Per-question attempt lifecycle for the daily set.

Transitions: pending -> hint_used -> {correct, wrong, gave_up} and
pending -> {correct, wrong, gave_up}. Terminal states never change again.
Every call is one short transaction; an existing row is only ever moved
with a compare-and-set on the status it was read with.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime, timezone
from typing import Callable, Optional

from flask import current_app
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import NotFound

from ..extensions import db
from ..metrics import record_attempt_transition
from ..models import (
    Attempt,
    DailyAssignment,
    Question,
    User,
    STATUS_CORRECT,
    STATUS_GAVE_UP,
    STATUS_HINT_USED,
    STATUS_PENDING,
    STATUS_WRONG,
    TERMINAL_STATUSES,
)
from . import question_bank, scoring_service
from .assignment_service import resolve_today

ACTION_HINT = "use_hint"
ACTION_SUBMIT = "submit_answer"
ACTION_GIVE_UP = "give_up"


class AttemptError(Exception):
    def __init__(self, code: str, payload: dict | None = None):
        super().__init__(code)
        self.code = code
        self.payload = payload or {}


class AttemptConflict(AttemptError):
    """The attempt is closed or moved underneath us."""

    def __init__(self, payload: dict | None = None):
        super().__init__("attempt_closed", payload)


class QuestionNotAssigned(AttemptError):
    def __init__(self, payload: dict | None = None):
        super().__init__("question_not_assigned", payload)


@dataclass
class AttemptOutcome:
    question_id: int
    status: str
    points_earned: int
    score_delta: int
    score: int
    level: str
    hint: Optional[str] = None
    explanation: Optional[str] = None
    correct_index: Optional[int] = None
    selected_index: Optional[int] = None

    def to_dict(self) -> dict:
        return asdict(self)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _load_context(user_id: int, question_id: int, day: date):
    if db.session.get(User, user_id) is None:
        raise NotFound(f"User {user_id} not found")
    question = db.session.get(Question, question_id)
    if question is None:
        raise NotFound(f"Question {question_id} not found")
    assignment = db.session.execute(
        select(DailyAssignment).where(
            DailyAssignment.user_id == user_id,
            DailyAssignment.assignment_date == day,
        )
    ).scalar_one_or_none()
    if assignment is None or question_id not in (assignment.question_ids or []):
        raise QuestionNotAssigned({"question_id": question_id, "date": day.isoformat()})
    attempt = db.session.execute(
        select(Attempt).where(
            Attempt.user_id == user_id,
            Attempt.question_id == question_id,
            Attempt.attempt_date == day,
        )
    ).scalar_one_or_none()
    return question, attempt


def _write(
    user_id: int,
    question_id: int,
    day: date,
    attempt: Attempt | None,
    observed: str,
    *,
    status: str,
    points_earned: int,
    selected_index: int | None = None,
) -> None:
    if attempt is None:
        db.session.add(
            Attempt(
                user_id=user_id,
                question_id=question_id,
                attempt_date=day,
                status=status,
                points_earned=points_earned,
                selected_index=selected_index,
            )
        )
        db.session.flush()
        return

    result = db.session.execute(
        update(Attempt)
        .where(Attempt.id == attempt.id, Attempt.status == observed)
        .values(
            status=status,
            points_earned=points_earned,
            selected_index=selected_index,
            updated_at=_utcnow(),
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise AttemptConflict({"question_id": question_id, "expected_status": observed})


def _settle(
    user_id: int,
    question: Question,
    day: date,
    *,
    status: str,
    points_earned: int,
    delta: int,
    selected_index: int | None = None,
) -> AttemptOutcome:
    score, level = scoring_service.apply_delta(user_id, delta)
    scoring_service.record_activity(user_id, day)
    outcome = AttemptOutcome(
        question_id=question.id,
        status=status,
        points_earned=points_earned,
        score_delta=delta,
        score=score,
        level=level,
        selected_index=selected_index,
    )
    if status == STATUS_HINT_USED or status in TERMINAL_STATUSES:
        outcome.hint = question.hint
    if status in TERMINAL_STATUSES:
        question_bank.mark_seen(user_id, [question.id])
        outcome.explanation = question.explanation
        outcome.correct_index = question.correct_index
    return outcome


def _hint(user_id: int, question_id: int, day: date) -> AttemptOutcome:
    question, attempt = _load_context(user_id, question_id, day)
    observed = attempt.status if attempt else STATUS_PENDING
    if observed == STATUS_HINT_USED:
        score, level = scoring_service.apply_delta(user_id, 0)
        return AttemptOutcome(
            question_id=question_id,
            status=observed,
            points_earned=attempt.points_earned,
            score_delta=0,
            score=score,
            level=level,
            hint=question.hint,
        )
    if observed != STATUS_PENDING:
        raise AttemptConflict({"question_id": question_id, "status": observed})

    penalty = scoring_service.points("hint")
    _write(user_id, question_id, day, attempt, observed, status=STATUS_HINT_USED, points_earned=penalty)
    return _settle(user_id, question, day, status=STATUS_HINT_USED, points_earned=penalty, delta=penalty)


def _close(
    user_id: int,
    question_id: int,
    day: date,
    *,
    selected_index: int | None = None,
    give_up: bool = False,
) -> AttemptOutcome:
    question, attempt = _load_context(user_id, question_id, day)
    observed = attempt.status if attempt else STATUS_PENDING
    if attempt is not None and attempt.is_terminal:
        raise AttemptConflict({"question_id": question_id, "status": observed})

    if give_up:
        status = STATUS_GAVE_UP
        delta = scoring_service.points("giveup")
    elif selected_index == question.correct_index:
        status = STATUS_CORRECT
        delta = scoring_service.points("correct")
    else:
        status = STATUS_WRONG
        delta = scoring_service.points("wrong")

    # The hint penalty was charged when the hint was taken; it only carries
    # into the stored net here.
    carried = attempt.points_earned if attempt is not None and observed == STATUS_HINT_USED else 0
    net = carried + delta
    _write(
        user_id,
        question_id,
        day,
        attempt,
        observed,
        status=status,
        points_earned=net,
        selected_index=selected_index,
    )
    return _settle(
        user_id,
        question,
        day,
        status=status,
        points_earned=net,
        delta=delta,
        selected_index=selected_index,
    )


def _run_transition(
    action: str,
    handler: Callable[..., AttemptOutcome],
    user_id: int,
    question_id: int,
    today: date | None,
    **kwargs,
) -> AttemptOutcome:
    day = resolve_today(today)
    for attempt_no in (1, 2):
        try:
            outcome = handler(user_id, question_id, day, **kwargs)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            if attempt_no == 2:
                raise
            current_app.logger.info(
                "Concurrent first write on attempt (user %s, question %s); retrying",
                user_id,
                question_id,
            )
            continue
        except AttemptConflict:
            db.session.rollback()
            record_attempt_transition(action, "conflict")
            raise
        except Exception:
            db.session.rollback()
            raise
        record_attempt_transition(action, outcome.status)
        return outcome
    raise RuntimeError("unreachable")  # pragma: no cover


def use_hint(user_id: int, question_id: int, today: date | None = None) -> AttemptOutcome:
    return _run_transition(ACTION_HINT, _hint, user_id, question_id, today)


def submit_answer(
    user_id: int,
    question_id: int,
    selected_index: int,
    today: date | None = None,
) -> AttemptOutcome:
    return _run_transition(
        ACTION_SUBMIT,
        _close,
        user_id,
        question_id,
        today,
        selected_index=selected_index,
    )


def give_up(user_id: int, question_id: int, today: date | None = None) -> AttemptOutcome:
    return _run_transition(ACTION_GIVE_UP, _close, user_id, question_id, today, give_up=True)
