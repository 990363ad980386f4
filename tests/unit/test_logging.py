from __future__ import annotations

import json
import logging
import re
from unittest.mock import AsyncMock

from fastapi.testclient import TestClient

from scholarflow.http.middleware import REQUEST_ID_HEADER, parse_skip_paths
from scholarflow.logging_config import ConsoleLogFormatter, JsonLogFormatter, parse_redact_fields
from scholarflow.logging_utils import structured_log
from scholarflow.main import app


def test_json_log_formatter_redacts_sensitive_fields() -> None:
    formatter = JsonLogFormatter(redact_fields=parse_redact_fields("api_key"))
    record = logging.makeLogRecord(
        {
            "name": "tests.logging",
            "levelno": logging.INFO,
            "levelname": "INFO",
            "msg": "test.event",
            "args": (),
            "orcid_access_token": "very-secret",
            "api_key": "also-secret",
            "payload": {
                "csrf_token": "token-value",
                "safe": "ok",
            },
            "color_message": "ANSI-noise",
        }
    )

    payload = json.loads(formatter.format(record))

    assert payload["event"] == "test.event"
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}Z", payload["timestamp"])
    assert payload["orcid_access_token"] == "[REDACTED]"
    assert payload["api_key"] == "[REDACTED]"
    assert payload["payload"]["csrf_token"] == "[REDACTED]"
    assert payload["payload"]["safe"] == "ok"
    assert "color_message" not in payload


def test_formatters_scrub_bearer_tokens_inside_text() -> None:
    record = logging.makeLogRecord(
        {
            "name": "tests.logging",
            "levelno": logging.WARNING,
            "levelname": "WARNING",
            "msg": "orcid.request_failed",
            "args": (),
            "request_headers": "{'Authorization': 'Bearer abc.DEF-123'}",
        }
    )
    redact = parse_redact_fields(None)

    payload = json.loads(JsonLogFormatter(redact_fields=redact).format(record))
    console = ConsoleLogFormatter(redact_fields=redact).format(record)

    assert payload["request_headers"] == "{'Authorization': 'Bearer [REDACTED]'}"
    assert "abc.DEF-123" not in console


def test_parse_redact_fields_always_includes_defaults() -> None:
    fields = parse_redact_fields(" Email , ,")

    assert "email" in fields
    assert "orcid_access_token" in fields
    assert "client_secret" in fields


def test_request_logging_middleware_sets_request_id_header(monkeypatch) -> None:
    monkeypatch.setattr("scholarflow.main.check_database", AsyncMock(return_value=True))
    client = TestClient(app)
    response = client.get("/healthz", headers={REQUEST_ID_HEADER: "request-123"})
    assert response.status_code == 200
    assert response.headers[REQUEST_ID_HEADER] == "request-123"


def test_healthz_reports_unreachable_database(monkeypatch) -> None:
    monkeypatch.setattr("scholarflow.main.check_database", AsyncMock(return_value=False))
    client = TestClient(app)

    response = client.get("/healthz")

    assert response.status_code == 500
    assert REQUEST_ID_HEADER in response.headers


def test_parse_skip_paths_trims_and_discards_empty_segments() -> None:
    assert parse_skip_paths(" /healthz , , /api/v1/templates ") == (
        "/healthz",
        "/api/v1/templates",
    )


def _capture_structured_log(caplog, level, event, **fields):
    logger = logging.getLogger("tests.structured")
    with caplog.at_level(logging.DEBUG, logger="tests.structured"):
        structured_log(logger, level, event, **fields)
    return caplog.records[-1]


def test_structured_log_json_formatter_uses_event_as_message(caplog) -> None:
    record = _capture_structured_log(caplog, "info", "orcid_import.completed", user_id=42)
    formatter = JsonLogFormatter(redact_fields=set())
    payload = json.loads(formatter.format(record))

    assert payload["event"] == "orcid_import.completed"
    assert payload["user_id"] == 42


def test_structured_log_console_formatter_shortens_known_keys(caplog) -> None:
    record = _capture_structured_log(
        caplog,
        "warning",
        "orcid.work_detail_failed",
        profile_id=7,
        orcid_id="0000-0002-1825-0097",
        put_code=11,
    )
    formatter = ConsoleLogFormatter(redact_fields=set())
    output = formatter.format(record)

    assert "WRN" in output
    assert "orcid.work_detail_failed" in output
    assert "profile=7" in output
    assert "orcid=0000-0002-1825-0097" in output
    assert "put_code=11" in output


def test_structured_log_forwards_exc_info(caplog) -> None:
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = _capture_structured_log(caplog, "error", "api.unhandled_error", exc_info=True)
    payload = json.loads(JsonLogFormatter(redact_fields=set()).format(record))

    assert "exc_info" not in payload
    assert "RuntimeError: boom" in payload["exception"]


def test_structured_log_extra_fields_in_output(caplog) -> None:
    record = _capture_structured_log(
        caplog,
        "info",
        "profiles.created",
        user_id=1,
        profile_id=99,
        username="ada-lovelace",
    )
    formatter = JsonLogFormatter(redact_fields=set())
    payload = json.loads(formatter.format(record))

    assert payload["event"] == "profiles.created"
    assert payload["user_id"] == 1
    assert payload["profile_id"] == 99
    assert payload["username"] == "ada-lovelace"
