"""Score, level and streak bookkeeping."""

from __future__ import annotations

from datetime import date, timedelta
from typing import List, Sequence, Tuple

from flask import current_app
from sqlalchemy import select, update
from werkzeug.exceptions import NotFound

from ..extensions import db
from ..models import LEVELS, User

# Inclusive upper bounds for every level but the last.
DEFAULT_LEVEL_THRESHOLDS = (25000, 50000, 75000, 100000)


def _thresholds() -> Sequence[int]:
    try:
        configured = current_app.config.get("LEVEL_THRESHOLDS")
    except RuntimeError:
        configured = None
    return tuple(configured) if configured else DEFAULT_LEVEL_THRESHOLDS


def calculate_level(score: int, thresholds: Sequence[int] | None = None) -> str:
    bounds = tuple(thresholds) if thresholds is not None else _thresholds()
    for level, upper in zip(LEVELS, bounds):
        if score <= upper:
            return level
    return LEVELS[len(bounds)] if len(bounds) < len(LEVELS) else LEVELS[-1]


def points(name: str) -> int:
    """Configured point value, e.g. ``points("correct")`` -> POINTS_CORRECT."""
    return int(current_app.config[f"POINTS_{name.upper()}"])


def apply_delta(user_id: int, delta: int) -> Tuple[int, str]:
    """Add ``delta`` to the user's score and refresh the level.

    Runs inside the caller's transaction and never commits.
    """
    if delta:
        db.session.execute(
            update(User).where(User.id == user_id).values(score=User.score + delta)
        )
    score = db.session.execute(select(User.score).where(User.id == user_id)).scalar_one_or_none()
    if score is None:
        raise NotFound(f"User {user_id} not found")
    level = calculate_level(score)
    db.session.execute(
        update(User).where(User.id == user_id, User.level != level).values(level=level)
    )
    return score, level


def record_activity(user_id: int, day: date) -> int:
    """Advance the day streak for activity on ``day``; returns the streak."""
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound(f"User {user_id} not found")
    last = user.last_active_date
    if last == day:
        return user.day_streak
    if last == day - timedelta(days=1):
        user.day_streak = (user.day_streak or 0) + 1
    elif last is None or last < day:
        user.day_streak = 1
    else:
        # Activity stamped earlier than the last recorded day changes nothing.
        return user.day_streak
    user.last_active_date = day
    return user.day_streak


def _lapsed_streaks(cutoff: date) -> List[Tuple[int, int]]:
    stmt = select(User.id, User.day_streak).where(
        User.day_streak > 0,
        User.last_active_date < cutoff,
    )
    return [(user_id, streak) for user_id, streak in db.session.execute(stmt)]


def apply_streak_penalties(today: date) -> int:
    """Reset lapsed streaks and charge ``streak * STREAK_LOSS`` for each.

    A streak lapses when the user's last activity is older than yesterday.
    The charge is applied in place as ``score + penalty`` and is guarded
    by the streak that was read. Returns the number of users penalised.
    """
    cutoff = today - timedelta(days=1)
    loss = int(current_app.config.get("STREAK_LOSS", -50))
    penalised = 0
    try:
        for user_id, streak in _lapsed_streaks(cutoff):
            penalty = streak * loss
            result = db.session.execute(
                update(User)
                .where(
                    User.id == user_id,
                    User.day_streak == streak,
                    User.last_active_date < cutoff,
                )
                .values(score=User.score + penalty, day_streak=0)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                current_app.logger.info("Streak for user %s changed during the check; skipped", user_id)
                continue
            score, level = apply_delta(user_id, 0)
            current_app.logger.info(
                "Streak lapsed for user %s: streak %s, penalty %s, score %s (%s)",
                user_id,
                streak,
                penalty,
                score,
                level,
            )
            penalised += 1
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return penalised
