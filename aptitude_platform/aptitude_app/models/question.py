"""Question bank models."""

from __future__ import annotations

from datetime import datetime, timezone

from ..extensions import db

DIFFICULTIES = ("Easy", "Medium", "Hard")
CATEGORIES = (
    "Quantitative Aptitude",
    "Logical Reasoning",
    "Verbal Ability",
    "Data Interpretation",
    "Puzzles",
    "Technical Aptitude",
)
DEFAULT_CATEGORY = CATEGORIES[0]


def utcnow():
    return datetime.now(timezone.utc)


class Question(db.Model):
    """Immutable bank question; shared across users once persisted."""

    __tablename__ = "questions"

    id = db.Column(db.Integer, primary_key=True)
    qid = db.Column(db.String(16), unique=True, nullable=False, index=True)
    question_text = db.Column(db.Text, nullable=False)
    options = db.Column(db.JSON, nullable=False)
    correct_index = db.Column(db.Integer, nullable=False)
    difficulty = db.Column(db.String(16), nullable=False, index=True)
    category = db.Column(db.String(64), nullable=False, default=DEFAULT_CATEGORY)
    hint = db.Column(db.Text)
    explanation = db.Column(db.Text)
    generated_for_date = db.Column(db.Date)
    metadata_json = db.Column("metadata", db.JSON)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        db.CheckConstraint("correct_index BETWEEN 0 AND 3", name="ck_questions_correct_index"),
    )

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<Question {self.qid} {self.difficulty}>"
