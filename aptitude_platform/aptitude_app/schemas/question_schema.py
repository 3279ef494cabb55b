"""Schemas for oracle candidates and bank questions."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, ValidationError, fields, pre_load, validate, validates

from ..models import DEFAULT_CATEGORY, DIFFICULTIES


class OracleCandidateSchema(Schema):
    """Shape every oracle record must have before it may enter the bank."""

    class Meta:
        unknown = EXCLUDE

    question_text = fields.String(required=True, validate=validate.Length(min=1))
    options = fields.List(
        fields.String(validate=validate.Length(min=1)),
        required=True,
        validate=validate.Length(equal=4),
    )
    correct_answer = fields.Raw(required=True, allow_none=False)
    explanation = fields.String(required=True)
    hint = fields.String(required=True)
    category = fields.String(load_default=DEFAULT_CATEGORY)
    difficulty = fields.String(required=True, validate=validate.OneOf(DIFFICULTIES))

    @pre_load
    def _coerce_scalars(self, data, **kwargs):
        if not isinstance(data, dict):
            return data
        data = dict(data)
        options = data.get("options")
        if isinstance(options, list):
            data["options"] = [
                str(option).strip() if isinstance(option, (str, int, float)) else option
                for option in options
            ]
        for key in ("question_text", "explanation", "hint", "category"):
            if isinstance(data.get(key), str):
                data[key] = data[key].strip()
        if not data.get("category"):
            data.pop("category", None)
        return data

    @validates("correct_answer")
    def _validate_correct_answer(self, value, **kwargs):
        if isinstance(value, str) and not value.strip():
            raise ValidationError("correct_answer must not be blank.")


class QuestionSchema(Schema):
    """Public view of a bank question; never exposes the answer."""

    id = fields.Integer(dump_only=True)
    qid = fields.String(dump_only=True)
    question_text = fields.String(dump_only=True)
    options = fields.List(fields.String(), dump_only=True)
    difficulty = fields.String(dump_only=True)
    category = fields.String(dump_only=True)
    created_at = fields.DateTime(dump_only=True)
