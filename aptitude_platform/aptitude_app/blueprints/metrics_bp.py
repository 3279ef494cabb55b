"""Prometheus scrape endpoint (request, assignment, oracle and attempt series)."""

from __future__ import annotations

from flask import Blueprint, Response

from ..extensions import limiter
from ..metrics import latest_metrics

metrics_bp = Blueprint("metrics_bp", __name__)


@metrics_bp.get("/metrics")
@limiter.exempt
def metrics():
    payload, content_type = latest_metrics()
    response = Response(payload, mimetype=content_type)
    response.headers["Cache-Control"] = "no-store"
    return response
