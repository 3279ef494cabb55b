"""Serialization / validation schemas (Marshmallow)."""

from .question_schema import OracleCandidateSchema, QuestionSchema
from .practice_schema import (
    AttemptActionSchema,
    AnswerSubmitSchema,
    AttemptOutcomeSchema,
    AssignmentStatusSchema,
)

__all__ = [
    "OracleCandidateSchema",
    "QuestionSchema",
    "AttemptActionSchema",
    "AnswerSubmitSchema",
    "AttemptOutcomeSchema",
    "AssignmentStatusSchema",
]
