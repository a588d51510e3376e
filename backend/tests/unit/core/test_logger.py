"""Tests for JSON log formatting, secret redaction and request correlation."""

from __future__ import annotations

import json
import logging
import sys

from identity_service.core.logger import (
    REDACTED,
    JSONFormatter,
    RedactSecretsFilter,
    RequestIdFilter,
)


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="identity_service.test",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="auth.refresh.rejected",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def _render(record: logging.LogRecord, **formatter_kwargs) -> dict:
    RequestIdFilter().filter(record)
    RedactSecretsFilter().filter(record)
    return json.loads(JSONFormatter(**formatter_kwargs).format(record))


def test_json_formatter_emits_structured_fields():
    payload = _render(_record(reason="revoked", token_id="t-1", user_id="u-1"), service="ids")

    assert payload["level"] == "WARNING"
    assert payload["message"] == "auth.refresh.rejected"
    assert payload["service"] == "ids"
    assert payload["reason"] == "revoked"
    assert payload["token_id"] == "t-1"
    assert payload["user_id"] == "u-1"
    assert payload["request_id"] is None
    assert "lineno" not in payload


def test_credentials_never_reach_the_output():
    payload = _render(_record(refresh_token="s3cr3t", token_digest="abc=", id_token="eyJ"))

    assert payload["refresh_token"] == REDACTED
    assert payload["token_digest"] == REDACTED
    assert payload["id_token"] == REDACTED
    assert "s3cr3t" not in json.dumps(payload)


def test_json_formatter_includes_traceback():
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = _record()
        record.exc_info = sys.exc_info()

    payload = json.loads(JSONFormatter().format(record))
    assert "RuntimeError: boom" in payload["exc_info"]
    assert "service" not in payload


def test_request_id_is_echoed(app):
    client = app.test_client()
    resp = client.get("/api/v1/health", headers={"X-Request-ID": "req-42"})
    assert resp.headers["X-Request-ID"] == "req-42"


def test_request_id_is_generated(app):
    resp = app.test_client().get("/api/v1/health")
    assert resp.headers.get("X-Request-ID")


def test_request_id_is_per_request_under_outer_app_context(app):
    client = app.test_client()
    with app.app_context():
        first = client.get("/api/v1/health").headers["X-Request-ID"]
        second = client.get("/api/v1/health", headers={"X-Request-ID": "req-43"})

    assert second.headers["X-Request-ID"] == "req-43"
    assert first != "req-43"
