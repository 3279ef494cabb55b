"""Tests for CLI daily practice commands."""

from __future__ import annotations

from datetime import date

from aptitude_app.extensions import db
from aptitude_app.models import DailyAssignment, User


def test_assign_single_user(app_with_db, make_user, stub_oracle):
    runner = app_with_db.test_cli_runner()
    user_id = make_user()
    result = runner.invoke(args=["daily", "assign", "--user-id", str(user_id), "--date", "2026-10-01"])
    assert result.exit_code == 0, result.output
    assert "Assigned 10/10 questions" in result.output
    assert DailyAssignment.query.filter_by(user_id=user_id, assignment_date=date(2026, 10, 1)).count() == 1

    repeat = runner.invoke(args=["daily", "assign", "--user-id", str(user_id), "--date", "2026-10-01"])
    assert "Already assigned" in repeat.output


def test_assign_all_students(app_with_db, make_user, stub_oracle):
    runner = app_with_db.test_cli_runner()
    first_id = make_user()
    second_id = make_user("Pro")
    result = runner.invoke(args=["daily", "assign", "--all"])
    assert result.exit_code == 0, result.output
    assert f"user {first_id}" in result.output and f"user {second_id}" in result.output
    assert DailyAssignment.query.count() == 2


def test_assign_requires_a_target(app_with_db):
    runner = app_with_db.test_cli_runner()
    assert runner.invoke(args=["daily", "assign"]).exit_code != 0
    assert runner.invoke(args=["daily", "assign", "--all", "--user-id", "1"]).exit_code != 0


def test_assign_unknown_user(app_with_db):
    result = app_with_db.test_cli_runner().invoke(args=["daily", "assign", "--user-id", "999"])
    assert result.exit_code != 0
    assert "not found" in result.output


def test_streak_check(app_with_db, make_user):
    user_id = make_user(score=300, day_streak=2, last_active_date=date(2026, 10, 1))
    result = app_with_db.test_cli_runner().invoke(args=["daily", "streak-check", "--date", "2026-10-05"])
    assert result.exit_code == 0, result.output
    assert "Processed 1 lapsed streaks" in result.output
    db.session.expire_all()
    user = db.session.get(User, user_id)
    assert user.score == 200
    assert user.day_streak == 0


def test_seed_users_prints_token(app_with_db):
    result = app_with_db.test_cli_runner().invoke(args=["seed-users", "--email", "Demo@Example.com"])
    assert result.exit_code == 0, result.output
    assert "Access token:" in result.output
    assert User.query.filter_by(email="demo@example.com").count() == 1
