from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
import re
import sys
from typing import Any

from scholarflow.logging_context import get_request_id, get_session_user_id

REDACTED = "[REDACTED]"
DEFAULT_REDACT_FIELDS = {
    "access_token",
    "authorization",
    "client_secret",
    "cookie",
    "csrf_token",
    "oauth_state",
    "orcid_access_token",
    "refresh_token",
    "session",
    "session_secret_key",
}

# Tokens can also leak inside free text, e.g. a logged header dict repr or an exception message.
_BEARER_TOKEN_RE = re.compile(r"(?i)\b(bearer\s+)[A-Za-z0-9\-._~+/]+=*")

_RESERVED_PAYLOAD_KEYS = ("timestamp", "level", "logger", "event", "request_id", "exception")
_STANDARD_RECORD_FIELDS = set(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}
_NOISY_RECORD_FIELDS = {"color_message"}

_CONSOLE_SHORT_KEYS = {
    "user_id": "user",
    "profile_id": "profile",
    "orcid_id": "orcid",
}
_CONSOLE_LEVELS = {
    "debug": "DBG",
    "info": "INF",
    "warning": "WRN",
    "error": "ERR",
    "critical": "CRT",
}


def parse_redact_fields(raw: str | None) -> set[str]:
    extra = {field.strip().lower() for field in (raw or "").split(",") if field.strip()}
    return DEFAULT_REDACT_FIELDS | extra


def configure_logging(
    *,
    level: str,
    log_format: str,
    redact_fields: set[str],
    include_uvicorn_access: bool,
) -> None:
    """Install a single stdout handler on the root logger.

    Uvicorn's own loggers are stripped of their handlers and propagate to the
    root, so every line shares one format and the same redaction rules.
    """
    numeric_level = _level_number(level)
    formatter_class = JsonLogFormatter if log_format.strip().lower() == "json" else ConsoleLogFormatter

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setLevel(numeric_level)
    handler.addFilter(RequestContextFilter())
    handler.setFormatter(formatter_class(redact_fields=redact_fields))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(numeric_level)
    root_logger.addHandler(handler)

    framework_levels = {
        "uvicorn": numeric_level,
        "uvicorn.error": numeric_level,
        "uvicorn.access": numeric_level if include_uvicorn_access else logging.WARNING,
    }
    for logger_name, logger_level in framework_levels.items():
        framework_logger = logging.getLogger(logger_name)
        framework_logger.handlers.clear()
        framework_logger.propagate = True
        framework_logger.setLevel(logger_level)

    # httpx logs every outbound ORCID request at INFO, full URLs included.
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))


class RequestContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            request_id = get_request_id()
            if request_id:
                record.request_id = request_id
        if getattr(record, "user_id", None) is None:
            session_user_id = get_session_user_id()
            if session_user_id is not None:
                record.user_id = session_user_id
        return True


class _RedactingFormatter(logging.Formatter):
    def __init__(self, *, redact_fields: set[str]) -> None:
        super().__init__()
        self._redact_fields = {field.lower() for field in redact_fields}

    def build_payload(self, record: logging.LogRecord) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "timestamp": _format_timestamp(record.created),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": _scrub_text(str(getattr(record, "event", record.getMessage()))),
        }
        request_id = getattr(record, "request_id", None)
        if request_id:
            payload["request_id"] = request_id
        for key, value in _extra_fields(record).items():
            payload[key] = self._redact(key, value)
        if record.exc_info:
            payload["exception"] = _scrub_text(self.formatException(record.exc_info))
        return payload

    def _redact(self, key: str, value: Any) -> Any:
        if key.lower() in self._redact_fields:
            return REDACTED
        if isinstance(value, dict):
            return {nested_key: self._redact(str(nested_key), nested) for nested_key, nested in value.items()}
        if isinstance(value, (list, tuple)):
            return [self._redact(key, item) for item in value]
        if isinstance(value, str):
            return _scrub_text(value)
        return value


class JsonLogFormatter(_RedactingFormatter):
    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(self.build_payload(record), ensure_ascii=True, default=str)


class ConsoleLogFormatter(_RedactingFormatter):
    """``timestamp | LVL | logger | event | rid=.. | GET /path | 200 | 12ms | key=value``."""

    def format(self, record: logging.LogRecord) -> str:
        payload = json.loads(json.dumps(self.build_payload(record), default=str))
        parts: list[str] = [
            payload["timestamp"],
            _CONSOLE_LEVELS.get(payload["level"], payload["level"][:3].upper()),
            payload["logger"],
            payload["event"],
        ]
        if payload.get("request_id"):
            parts.append(f"rid={payload['request_id']}")

        method = payload.pop("method", None)
        path = payload.pop("path", None)
        if method and path:
            parts.append(f"{method} {path}")
        status_code = payload.pop("status_code", None)
        if status_code is not None:
            parts.append(str(status_code))
        duration_ms = payload.pop("duration_ms", None)
        if duration_ms is not None:
            parts.append(f"{duration_ms}ms")

        for key in sorted(set(payload) - set(_RESERVED_PAYLOAD_KEYS)):
            parts.append(f"{_CONSOLE_SHORT_KEYS.get(key, key)}={payload[key]}")
        if "exception" in payload:
            parts.append(f"exception={payload['exception']}")
        return " | ".join(part for part in parts if part)


def _scrub_text(value: str) -> str:
    return _BEARER_TOKEN_RE.sub(rf"\g<1>{REDACTED}", value)


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_RECORD_FIELDS
        and key not in _NOISY_RECORD_FIELDS
        and key != "request_id"
        and not key.startswith("_")
    }


def _level_number(level: str) -> int:
    return logging.getLevelNamesMapping().get(level.strip().upper(), logging.INFO)


def _format_timestamp(created_ts: float) -> str:
    return datetime.fromtimestamp(created_ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%SZ")
