"""Tests for score, level and streak bookkeeping."""

from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import update
from werkzeug.exceptions import NotFound

from aptitude_app.extensions import db
from aptitude_app.models import User
from aptitude_app.services import scoring_service

TODAY = date(2026, 10, 10)


@pytest.mark.parametrize(
    "score, level",
    [
        (-500, "Beginner"),
        (0, "Beginner"),
        (25000, "Beginner"),
        (25001, "Intermediate"),
        (50000, "Intermediate"),
        (75000, "Advanced"),
        (100000, "Pro"),
        (100001, "Expert"),
    ],
)
def test_calculate_level_thresholds(score, level):
    assert scoring_service.calculate_level(score) == level


def test_calculate_level_with_custom_thresholds():
    assert scoring_service.calculate_level(150, thresholds=(100, 200, 300, 400)) == "Intermediate"
    assert scoring_service.calculate_level(401, thresholds=(100, 200, 300, 400)) == "Expert"


def test_configured_thresholds_are_used(app_with_db):
    app_with_db.config["LEVEL_THRESHOLDS"] = (10, 20, 30, 40)
    assert scoring_service.calculate_level(35) == "Pro"


def test_apply_delta_promotes_without_committing(app_with_db, make_user):
    user_id = make_user("Beginner", score=24950)
    score, level = scoring_service.apply_delta(user_id, 100)
    assert (score, level) == (25050, "Intermediate")
    db.session.rollback()
    assert db.session.get(User, user_id).score == 24950


def test_apply_delta_unknown_user(app_with_db):
    with pytest.raises(NotFound):
        scoring_service.apply_delta(404, 10)


@pytest.mark.parametrize(
    "last_active, streak, expected",
    [
        (None, 0, 1),
        (date(2026, 10, 9), 3, 4),
        (date(2026, 10, 10), 3, 3),
        (date(2026, 10, 5), 3, 1),
    ],
)
def test_record_activity(app_with_db, make_user, last_active, streak, expected):
    user_id = make_user(last_active_date=last_active, day_streak=streak)
    assert scoring_service.record_activity(user_id, TODAY) == expected
    db.session.commit()
    assert db.session.get(User, user_id).last_active_date == TODAY


def test_streak_penalty_applies_to_lapsed_users_only(app_with_db, make_user):
    lapsed = make_user(score=1000, day_streak=3, last_active_date=date(2026, 10, 7))
    active_yesterday = make_user(score=1000, day_streak=2, last_active_date=date(2026, 10, 9))
    active_today = make_user(score=1000, day_streak=5, last_active_date=TODAY)
    no_streak = make_user(score=1000, day_streak=0, last_active_date=date(2026, 9, 1))

    assert scoring_service.apply_streak_penalties(TODAY) == 1

    db.session.expire_all()
    penalised = db.session.get(User, lapsed)
    assert penalised.score == 1000 + 3 * -50
    assert penalised.day_streak == 0
    for untouched in (active_yesterday, active_today, no_streak):
        assert db.session.get(User, untouched).score == 1000


def test_streak_penalty_recomputes_level(app_with_db, make_user):
    user_id = make_user("Intermediate", score=25040, day_streak=2, last_active_date=date(2026, 10, 1))
    scoring_service.apply_streak_penalties(TODAY)
    db.session.expire_all()
    assert db.session.get(User, user_id).level == "Beginner"


def test_streak_penalty_keeps_score_changes_made_after_the_check(app_with_db, make_user, monkeypatch):
    user_id = make_user(score=1000, day_streak=3, last_active_date=date(2026, 10, 7))
    real_lapsed = scoring_service._lapsed_streaks

    def _lapsed_then_scored(cutoff):
        rows = real_lapsed(cutoff)
        db.session.execute(update(User).where(User.id == user_id).values(score=User.score + 100))
        return rows

    monkeypatch.setattr(scoring_service, "_lapsed_streaks", _lapsed_then_scored)

    assert scoring_service.apply_streak_penalties(TODAY) == 1

    db.session.expire_all()
    user = db.session.get(User, user_id)
    assert user.score == 1000 + 100 + 3 * -50
    assert user.day_streak == 0


def test_streak_penalty_skips_users_active_again(app_with_db, make_user, monkeypatch):
    user_id = make_user(score=1000, day_streak=3, last_active_date=date(2026, 10, 7))
    real_lapsed = scoring_service._lapsed_streaks

    def _lapsed_then_active(cutoff):
        rows = real_lapsed(cutoff)
        db.session.execute(
            update(User).where(User.id == user_id).values(day_streak=1, last_active_date=TODAY)
        )
        return rows

    monkeypatch.setattr(scoring_service, "_lapsed_streaks", _lapsed_then_active)

    assert scoring_service.apply_streak_penalties(TODAY) == 0

    db.session.expire_all()
    user = db.session.get(User, user_id)
    assert (user.score, user.day_streak) == (1000, 1)
