"""Daily practice models (assignments and attempts)."""

from __future__ import annotations

from datetime import datetime, timezone

from ..extensions import db

STATUS_PENDING = "pending"
STATUS_HINT_USED = "hint_used"
STATUS_CORRECT = "correct"
STATUS_WRONG = "wrong"
STATUS_GAVE_UP = "gave_up"

TERMINAL_STATUSES = frozenset({STATUS_CORRECT, STATUS_WRONG, STATUS_GAVE_UP})


def utcnow():
    return datetime.now(timezone.utc)


class DailyAssignment(db.Model):
    __tablename__ = "daily_assignments"
    __table_args__ = (
        db.UniqueConstraint("user_id", "assignment_date", name="uq_user_assignment_date"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    assignment_date = db.Column(db.Date, nullable=False, index=True)
    question_ids = db.Column(db.JSON, nullable=False)
    requested_count = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    user = db.relationship("User", backref=db.backref("daily_assignments", lazy="dynamic"))


class Attempt(db.Model):
    __tablename__ = "attempts"
    __table_args__ = (
        db.UniqueConstraint(
            "user_id",
            "question_id",
            "attempt_date",
            name="uq_attempt_user_question_date",
        ),
        db.Index("ix_attempts_user_date", "user_id", "attempt_date"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    question_id = db.Column(db.Integer, db.ForeignKey("questions.id"), nullable=False)
    attempt_date = db.Column(db.Date, nullable=False)
    status = db.Column(db.String(16), nullable=False, default=STATUS_PENDING)
    selected_index = db.Column(db.Integer)
    points_earned = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    user = db.relationship("User", backref=db.backref("attempts", lazy="dynamic"))
    question = db.relationship("Question")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
