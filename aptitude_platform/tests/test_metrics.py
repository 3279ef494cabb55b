"""Tests for logging/metrics hardening."""

from __future__ import annotations

import json
import logging

from aptitude_app.logging_config import AUDIT_LOGGER_NAME, JsonFormatter


def test_metrics_endpoint(client):
    client.get("/api/practice/ping")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert b"aptitude_requests_total" in resp.data
    assert b"aptitude_answer_index_fallbacks_total" in resp.data


def test_request_id_header(client):
    resp = client.get("/api/practice/ping")
    assert resp.status_code == 200
    assert "X-Request-ID" in resp.headers


def test_request_id_is_echoed(client):
    resp = client.get("/api/practice/ping", headers={"X-Request-ID": "abc-123"})
    assert resp.headers["X-Request-ID"] == "abc-123"


def test_json_formatter_carries_audit_payload():
    record = logging.LogRecord(AUDIT_LOGGER_NAME, logging.WARNING, __file__, 1, "fallback %s", ("x",), None)
    record.audit = {"event": "answer_index_fallback", "raw": "'x'"}
    payload = json.loads(JsonFormatter().format(record))
    assert payload["message"] == "fallback x"
    assert payload["audit"]["event"] == "answer_index_fallback"
