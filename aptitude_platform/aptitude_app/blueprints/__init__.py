"""REST API blueprints (daily practice, metrics)."""

from __future__ import annotations

from .practice_bp import practice_bp
from .metrics_bp import metrics_bp

BLUEPRINTS = (
    (practice_bp, "/api/practice"),
    (metrics_bp, ""),
)

__all__ = [
    "BLUEPRINTS",
    "practice_bp",
    "metrics_bp",
]
