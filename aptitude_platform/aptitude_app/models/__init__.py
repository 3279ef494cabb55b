"""Database models package."""

from .question import Question, DIFFICULTIES, CATEGORIES, DEFAULT_CATEGORY
from .user import User, UserSeenQuestion, LEVELS, DEFAULT_LEVEL
from .practice import (
    Attempt,
    DailyAssignment,
    TERMINAL_STATUSES,
    STATUS_PENDING,
    STATUS_HINT_USED,
    STATUS_CORRECT,
    STATUS_WRONG,
    STATUS_GAVE_UP,
)

__all__ = [
    "User",
    "UserSeenQuestion",
    "Question",
    "DailyAssignment",
    "Attempt",
    "LEVELS",
    "DEFAULT_LEVEL",
    "DIFFICULTIES",
    "CATEGORIES",
    "DEFAULT_CATEGORY",
    "TERMINAL_STATUSES",
    "STATUS_PENDING",
    "STATUS_HINT_USED",
    "STATUS_CORRECT",
    "STATUS_WRONG",
    "STATUS_GAVE_UP",
]
