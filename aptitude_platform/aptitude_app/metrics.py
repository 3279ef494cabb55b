"""Prometheus metrics helpers."""

from __future__ import annotations

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

REQUEST_COUNT = Counter(
    "aptitude_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)
REQUEST_LATENCY = Histogram(
    "aptitude_request_latency_seconds",
    "Latency of HTTP requests in seconds",
    ["endpoint"],
)
ASSIGNMENT_COUNT = Counter(
    "aptitude_assignments_total",
    "Daily assignment runs by outcome",
    ["outcome"],
)
ORACLE_REQUESTS = Counter(
    "aptitude_oracle_requests_total",
    "Question oracle requests by difficulty and outcome",
    ["difficulty", "outcome"],
)
ORACLE_LATENCY = Histogram(
    "aptitude_oracle_latency_seconds",
    "Latency of question oracle calls in seconds",
    ["difficulty"],
)
ANSWER_FALLBACKS = Counter(
    "aptitude_answer_index_fallbacks_total",
    "Correct-answer tokens that could not be resolved and defaulted to index 0",
)
ATTEMPT_TRANSITIONS = Counter(
    "aptitude_attempt_transitions_total",
    "Attempt state transitions by action and resulting status",
    ["action", "status"],
)


def record_request(method: str, endpoint: str, status: int, latency: float) -> None:
    REQUEST_COUNT.labels(method=method, endpoint=endpoint, status=status).inc()
    REQUEST_LATENCY.labels(endpoint=endpoint).observe(latency)


def record_assignment(outcome: str) -> None:
    ASSIGNMENT_COUNT.labels(outcome=outcome).inc()


def record_oracle_call(difficulty: str, outcome: str, latency: float | None = None) -> None:
    ORACLE_REQUESTS.labels(difficulty=difficulty, outcome=outcome).inc()
    if latency is not None:
        ORACLE_LATENCY.labels(difficulty=difficulty).observe(latency)


def record_answer_fallback() -> None:
    ANSWER_FALLBACKS.inc()


def record_attempt_transition(action: str, status: str) -> None:
    ATTEMPT_TRANSITIONS.labels(action=action, status=status).inc()


def latest_metrics() -> tuple[bytes, str]:
    data = generate_latest()
    return data, CONTENT_TYPE_LATEST
