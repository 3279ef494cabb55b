"""User domain models."""

from __future__ import annotations

from datetime import datetime, timezone

from ..extensions import db

LEVELS = ("Beginner", "Intermediate", "Advanced", "Pro", "Expert")
DEFAULT_LEVEL = LEVELS[0]


def utcnow():
    return datetime.now(timezone.utc)


class User(db.Model):
    """Practising user; score and level are owned by the scoring service."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    username = db.Column(db.String(64), unique=True, nullable=True, index=True)
    role = db.Column(db.String(32), nullable=False, default="student")
    level = db.Column(db.String(32), nullable=False, default=DEFAULT_LEVEL)
    score = db.Column(db.Integer, nullable=False, default=0, server_default="0")
    day_streak = db.Column(db.Integer, nullable=False, default=0, server_default="0")
    last_active_date = db.Column(db.Date)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    seen_questions = db.relationship(
        "UserSeenQuestion",
        back_populates="user",
        lazy="dynamic",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<User {self.email} ({self.level}, {self.score})>"


class UserSeenQuestion(db.Model):
    """Append-only history of every question ever assigned to a user."""

    __tablename__ = "user_seen_questions"
    __table_args__ = (
        db.UniqueConstraint("user_id", "question_id", name="uq_user_seen_question"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    question_id = db.Column(db.Integer, db.ForeignKey("questions.id"), nullable=False, index=True)
    seen_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    user = db.relationship("User", back_populates="seen_questions")
