"""Schemas for daily practice APIs."""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class AttemptActionSchema(Schema):
    question_id = fields.Integer(required=True)


class AnswerSubmitSchema(AttemptActionSchema):
    selected_index = fields.Integer(required=True, validate=validate.Range(min=0, max=3))


class AttemptOutcomeSchema(Schema):
    question_id = fields.Integer(dump_only=True)
    status = fields.String(dump_only=True)
    points_earned = fields.Integer(dump_only=True)
    score_delta = fields.Integer(dump_only=True)
    score = fields.Integer(dump_only=True)
    level = fields.String(dump_only=True)
    hint = fields.String(dump_only=True, allow_none=True)
    explanation = fields.String(dump_only=True, allow_none=True)
    correct_index = fields.Integer(dump_only=True, allow_none=True)
    selected_index = fields.Integer(dump_only=True, allow_none=True)


class AssignmentStatusSchema(Schema):
    phase = fields.String(dump_only=True)
    done = fields.Integer(dump_only=True)
    total = fields.Integer(dump_only=True)
    message = fields.String(dump_only=True)
