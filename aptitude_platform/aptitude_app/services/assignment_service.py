"""Daily question assignment orchestration."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

from flask import current_app
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import NotFound

from ..extensions import db
from ..metrics import record_assignment
from ..models import (
    DIFFICULTIES,
    Attempt,
    DailyAssignment,
    Question,
    User,
    STATUS_HINT_USED,
    STATUS_PENDING,
    TERMINAL_STATUSES,
)
from ..schemas import QuestionSchema
from . import difficulty_service, question_bank, question_oracle
from .assignment_progress import (
    PHASE_ASSIGNING,
    PHASE_COMPLETE,
    PHASE_FAILED,
    PHASE_NOT_READY,
    PHASE_PENDING,
    get_progress_tracker,
)

STATUS_READY = "ready"
STATUS_NOT_READY = "not_ready"

question_schema = QuestionSchema()


@dataclass
class AssignmentResult:
    status: str
    question_ids: List[int] = field(default_factory=list)
    assignment_date: Optional[date] = None
    requested: int = 0
    created: bool = False

    @property
    def ready(self) -> bool:
        return self.status == STATUS_READY


def resolve_today(value: date | None = None) -> date:
    """Practice days are UTC calendar days."""
    return value or datetime.now(timezone.utc).date()


def get_assignment(user_id: int, today: date | None = None) -> DailyAssignment | None:
    day = resolve_today(today)
    return db.session.execute(
        select(DailyAssignment).where(
            DailyAssignment.user_id == user_id,
            DailyAssignment.assignment_date == day,
        )
    ).scalar_one_or_none()


def _result_from(assignment: DailyAssignment, *, created: bool = False) -> AssignmentResult:
    return AssignmentResult(
        status=STATUS_READY,
        question_ids=list(assignment.question_ids or []),
        assignment_date=assignment.assignment_date,
        requested=assignment.requested_count,
        created=created,
    )


def _request_candidates(difficulty: str, count: int) -> List[Dict[str, Any]]:
    app = current_app
    max_attempts = max(1, int(app.config.get("ORACLE_MAX_ATTEMPTS", 2)))
    backoff = float(app.config.get("ORACLE_RETRY_BACKOFF", 2.0))
    for attempt in range(1, max_attempts + 1):
        try:
            return question_oracle.generate_candidates(difficulty, count)
        except question_oracle.OracleError as exc:
            if attempt >= max_attempts:
                app.logger.warning(
                    "Oracle gave up on %s %s questions after %s attempts: %s",
                    count,
                    difficulty,
                    attempt,
                    exc,
                )
                return []
            delay = backoff * attempt
            app.logger.warning(
                "Oracle call failed for %s (attempt %s/%s): %s. Retrying in %.1fs",
                difficulty,
                attempt,
                max_attempts,
                exc,
                delay,
            )
            if delay > 0:
                time.sleep(delay)
    return []


def _generate_tier(
    user_id: int,
    difficulty: str,
    missing: int,
    day: date,
    picked: List[int],
    total: int,
) -> int:
    tracker = get_progress_tracker()
    # No transaction may stay open while the oracle is thinking.
    db.session.commit()
    tracker.update(user_id, PHASE_ASSIGNING, len(picked), total, f"Generating {difficulty} level questions...")

    added = 0
    for candidate in _request_candidates(difficulty, missing):
        if added >= missing:
            break
        try:
            question_id = question_bank.persist(candidate, difficulty=difficulty, generated_for=day)
        except question_bank.InvalidCandidate as exc:
            current_app.logger.warning(
                "Skipping invalid %s candidate for user %s: %s",
                difficulty,
                user_id,
                exc.errors or exc,
            )
            continue
        picked.append(question_id)
        added += 1
        tracker.update(user_id, PHASE_ASSIGNING, len(picked), total, f"Generated {len(picked)}/{total} questions...")
    return added


def _select_questions(user_id: int, day: date, distribution: Dict[str, int], total: int) -> List[int]:
    tracker = get_progress_tracker()
    tracker.update(user_id, PHASE_ASSIGNING, 0, total, "Preparing today's questions...")
    picked: List[int] = []
    for difficulty in DIFFICULTIES:
        need = distribution[difficulty]
        if need <= 0:
            continue
        reused = question_bank.reuse(difficulty, picked, need, seen_by_user=user_id)
        picked.extend(reused)
        missing = need - len(reused)
        generated = 0
        if missing > 0:
            generated = _generate_tier(user_id, difficulty, missing, day, picked, total)
        current_app.logger.info(
            "User %s %s tier: need %s, reused %s, generated %s",
            user_id,
            difficulty,
            need,
            len(reused),
            generated,
        )
        tracker.update(user_id, PHASE_ASSIGNING, len(picked), total, f"{difficulty} questions ready")
    return picked


def ensure_assigned(user_id: int, today: date | None = None) -> AssignmentResult:
    """Return today's question set for ``user_id``, building it at most once.

    Bank questions the user has never seen are reused first; the oracle only
    fills the gap. The (user, day) unique constraint decides the winner of
    concurrent runs, and losers return the winner's row. The seen-history
    constraint rejects a set holding a question another run already handed
    to this user; the selection is then rerun once.
    """
    day = resolve_today(today)
    existing = get_assignment(user_id, day)
    if existing is not None:
        record_assignment("existing")
        return _result_from(existing)

    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound(f"User {user_id} not found")
    total = int(current_app.config.get("DAILY_QUESTION_COUNT", 10))
    if total <= 0:
        return AssignmentResult(status=STATUS_READY, assignment_date=day, requested=0)

    tracker = get_progress_tracker()
    distribution = difficulty_service.resolve_distribution(user.level, total)

    for selection in (1, 2):
        picked = _select_questions(user_id, day, distribution, total)
        if not picked:
            record_assignment("not_ready")
            tracker.update(user_id, PHASE_NOT_READY, 0, total, "No questions could be prepared. Try again shortly.")
            return AssignmentResult(status=STATUS_NOT_READY, assignment_date=day, requested=total)

        try:
            db.session.add(
                DailyAssignment(
                    user_id=user_id,
                    assignment_date=day,
                    question_ids=list(picked),
                    requested_count=total,
                )
            )
            question_bank.claim_seen(user_id, picked)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            winner = get_assignment(user_id, day)
            if winner is not None:
                current_app.logger.info("User %s lost the assignment race for %s; using winner", user_id, day)
                record_assignment("race_lost")
                tracker.update(
                    user_id,
                    PHASE_COMPLETE,
                    len(winner.question_ids or []),
                    winner.requested_count,
                    "All questions ready",
                )
                return _result_from(winner)
            if selection == 1:
                current_app.logger.info(
                    "User %s was already handed part of the %s set elsewhere; selecting again",
                    user_id,
                    day,
                )
                continue
            record_assignment("failed")
            raise
        except Exception:
            db.session.rollback()
            record_assignment("failed")
            raise

        record_assignment("created" if len(picked) >= total else "partial")
        tracker.update(user_id, PHASE_COMPLETE, len(picked), total, "All questions ready")
        return AssignmentResult(
            status=STATUS_READY,
            question_ids=list(picked),
            assignment_date=day,
            requested=total,
            created=True,
        )


def get_daily_questions(user_id: int, today: date | None = None) -> Optional[Dict[str, Any]]:
    """Today's questions in assignment order, merged with attempt state.

    Answers and explanations stay hidden until the attempt is closed; the
    hint shows once it has been paid for.
    """
    day = resolve_today(today)
    assignment = get_assignment(user_id, day)
    if assignment is None:
        return None
    ids = list(assignment.question_ids or [])
    questions = {
        question.id: question
        for question in db.session.execute(select(Question).where(Question.id.in_(ids))).scalars()
    } if ids else {}
    attempts = {
        attempt.question_id: attempt
        for attempt in db.session.execute(
            select(Attempt).where(Attempt.user_id == user_id, Attempt.attempt_date == day)
        ).scalars()
    }

    items = []
    for question_id in ids:
        question = questions.get(question_id)
        if question is None:
            continue
        attempt = attempts.get(question_id)
        status = attempt.status if attempt else STATUS_PENDING
        item = question_schema.dump(question)
        item.update(
            status=status,
            points_earned=attempt.points_earned if attempt else 0,
            selected_index=attempt.selected_index if attempt else None,
            hint=None,
            explanation=None,
            correct_index=None,
        )
        if status == STATUS_HINT_USED or status in TERMINAL_STATUSES:
            item["hint"] = question.hint
        if status in TERMINAL_STATUSES:
            item["explanation"] = question.explanation
            item["correct_index"] = question.correct_index
        items.append(item)

    return {
        "date": day.isoformat(),
        "requested": assignment.requested_count,
        "questions": items,
    }


def get_status(user_id: int, today: date | None = None) -> Dict[str, Any]:
    entry = get_progress_tracker().get(user_id)
    if entry:
        return entry
    assignment = get_assignment(user_id, today)
    if assignment is not None:
        count = len(assignment.question_ids or [])
        return {"phase": PHASE_COMPLETE, "done": count, "total": assignment.requested_count, "message": "All questions ready"}
    return {"phase": PHASE_PENDING, "done": 0, "total": 0, "message": "Not started"}


def start_background_assignment(user_id: int) -> Optional[threading.Thread]:
    """Build today's set on a daemon thread; returns None when nothing to do."""
    if get_assignment(user_id) is not None:
        return None
    tracker = get_progress_tracker()
    entry = tracker.get(user_id)
    if entry and entry.get("phase") == PHASE_ASSIGNING:
        return None

    app = current_app._get_current_object()
    total = int(app.config.get("DAILY_QUESTION_COUNT", 10))
    tracker.update(user_id, PHASE_ASSIGNING, 0, total, "Queued")

    def _runner():
        with app.app_context():
            try:
                ensure_assigned(user_id)
            except Exception as exc:  # pragma: no cover - surfaced via tracker
                app.logger.exception("Background assignment failed for user %s", user_id)
                get_progress_tracker().update(user_id, PHASE_FAILED, 0, total, str(exc))
            finally:
                db.session.remove()

    thread = threading.Thread(target=_runner, name=f"daily-assign-{user_id}", daemon=True)
    thread.start()
    return thread
