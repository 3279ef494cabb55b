"""Business logic modules (oracle, question bank, assignment, attempts, scoring)."""

from . import (
    ai_client,
    answer_normalizer,
    difficulty_service,
    question_oracle,
    question_bank,
    assignment_progress,
    scoring_service,
    assignment_service,
    attempt_service,
)

__all__ = [
    "ai_client",
    "answer_normalizer",
    "difficulty_service",
    "question_oracle",
    "question_bank",
    "assignment_progress",
    "scoring_service",
    "assignment_service",
    "attempt_service",
]
