"""Daily practice endpoints: question set, activation status, attempts."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import current_user, jwt_required
from marshmallow import ValidationError

from ..extensions import limiter
from ..schemas import (
    AnswerSubmitSchema,
    AssignmentStatusSchema,
    AttemptActionSchema,
    AttemptOutcomeSchema,
)
from ..services import assignment_service, attempt_service

practice_bp = Blueprint("practice_bp", __name__)

action_schema = AttemptActionSchema()
submit_schema = AnswerSubmitSchema()
outcome_schema = AttemptOutcomeSchema()
status_schema = AssignmentStatusSchema()


def _assignment_limit() -> str:
    return current_app.config.get("RATE_LIMIT_ASSIGNMENT", "20 per minute")


@practice_bp.errorhandler(ValidationError)
def handle_validation_error(err: ValidationError):
    return jsonify({"errors": err.messages}), HTTPStatus.BAD_REQUEST


@practice_bp.errorhandler(attempt_service.AttemptConflict)
def handle_attempt_conflict(exc: attempt_service.AttemptConflict):
    return jsonify({"error": exc.code, **exc.payload}), HTTPStatus.CONFLICT


@practice_bp.errorhandler(attempt_service.QuestionNotAssigned)
def handle_not_assigned(exc: attempt_service.QuestionNotAssigned):
    return jsonify({"error": exc.code, **exc.payload}), HTTPStatus.NOT_FOUND


@practice_bp.get("/ping")
def ping():
    return jsonify({"module": "practice", "status": "ok"})


@practice_bp.get("/daily-questions")
@jwt_required()
@limiter.limit(_assignment_limit)
def daily_questions():
    result = assignment_service.ensure_assigned(current_user.id)
    if not result.ready:
        return (
            jsonify(
                {
                    "error": result.status,
                    "message": "Today's questions are not ready yet. Please try again shortly.",
                }
            ),
            HTTPStatus.SERVICE_UNAVAILABLE,
        )
    view = assignment_service.get_daily_questions(current_user.id, result.assignment_date) or {
        "date": result.assignment_date.isoformat(),
        "requested": result.requested,
        "questions": [],
    }
    return jsonify(
        {
            **view,
            "score": current_user.score,
            "level": current_user.level,
            "day_streak": current_user.day_streak,
        }
    )


@practice_bp.post("/daily/activate")
@jwt_required()
@limiter.limit(_assignment_limit)
def activate_daily():
    thread = assignment_service.start_background_assignment(current_user.id)
    status = status_schema.dump(assignment_service.get_status(current_user.id))
    if thread is None and status["phase"] == "complete":
        return jsonify(status), HTTPStatus.OK
    return jsonify(status), HTTPStatus.ACCEPTED


@practice_bp.get("/daily/status")
@jwt_required()
def daily_status():
    return jsonify(status_schema.dump(assignment_service.get_status(current_user.id)))


@practice_bp.post("/use-hint")
@jwt_required()
def use_hint():
    payload = action_schema.load(request.get_json() or {})
    outcome = attempt_service.use_hint(current_user.id, payload["question_id"])
    return jsonify(outcome_schema.dump(outcome.to_dict()))


@practice_bp.post("/submit-answer")
@jwt_required()
def submit_answer():
    payload = submit_schema.load(request.get_json() or {})
    outcome = attempt_service.submit_answer(
        current_user.id,
        payload["question_id"],
        payload["selected_index"],
    )
    return jsonify(outcome_schema.dump(outcome.to_dict()))


@practice_bp.post("/give-up")
@jwt_required()
def give_up():
    payload = action_schema.load(request.get_json() or {})
    outcome = attempt_service.give_up(current_user.id, payload["question_id"])
    return jsonify(outcome_schema.dump(outcome.to_dict()))
