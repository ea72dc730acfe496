"""Structured Logging — emoji console formatter, JSON formatter, and setup.

Invariants:
    - Every record renders as ONE line: timestamp, level, emoji, JSON payload
    - build_log_data is the single source of the payload (LogData) for both formatters
    - Only whitelisted extra fields are surfaced (no accidental dumps of request bodies)
    - setup_logging is idempotent: it replaces the handler it installed, never stacks

Design Decisions:
    - Stateless formatters on stdlib logging: no buffering, no background thread
    - emoji format for the console in development, json for log shippers in production
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, TypedDict


LEVEL_EMOJIS: dict[str, str] = {
    "DEBUG": "🐛",
    "INFO": "ℹ️",
    "WARNING": "⚠️",
    "ERROR": "❌",
    "CRITICAL": "🔥",
}
DEFAULT_EMOJI = "📝"

EXTRA_FIELDS: tuple[str, ...] = (
    "request_id", "method", "path", "status_code", "duration_ms",
    "user_id", "onboarding_id", "event_name", "error_code", "attempt",
    "provider",
)

_HANDLER_MARKER = "_kyc_console_handler"


class LogData(TypedDict, total=False):
    """Payload of one structured log line."""
    timestamp: str
    level: str
    emoji: str
    logger: str
    message: str
    exception: str


def build_log_data(
    record: logging.LogRecord, formatter: logging.Formatter | None = None,
) -> LogData:
    """Build the structured payload for a log record."""
    data: dict[str, Any] = {
        "timestamp": datetime.fromtimestamp(
            record.created, tz=timezone.utc,
        ).isoformat(),
        "level": record.levelname,
        "emoji": LEVEL_EMOJIS.get(record.levelname, DEFAULT_EMOJI),
        "logger": record.name,
        "message": record.getMessage(),
    }
    for key in EXTRA_FIELDS:
        val = record.__dict__.get(key)
        if val is not None:
            data[key] = val
    if record.exc_info:
        fmt = formatter or logging.Formatter()
        data["exception"] = fmt.formatException(record.exc_info)
    return data  # type: ignore[return-value]


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(
            build_log_data(record, self), ensure_ascii=False, default=str,
        )


class EmojiFormatter(logging.Formatter):
    """Console format: `<timestamp> <emoji> <LEVEL> {json payload}`."""

    def format(self, record: logging.LogRecord) -> str:
        data = dict(build_log_data(record, self))
        timestamp = data.pop("timestamp")
        emoji = data.pop("emoji")
        level = data.pop("level")
        payload = json.dumps(data, ensure_ascii=False, default=str)
        return f"{timestamp} {emoji} {level} {payload}"


def _build_formatter(fmt: str) -> logging.Formatter:
    if fmt == "json":
        return JSONFormatter()
    if fmt == "emoji":
        return EmojiFormatter()
    return logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s — %(message)s",
    )


def setup_logging(level: str = "INFO", fmt: str = "emoji") -> logging.Handler:
    """Configure root logging. Safe to call more than once."""
    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, _HANDLER_MARKER, False):
            root.removeHandler(existing)

    handler = logging.StreamHandler()
    handler.setFormatter(_build_formatter(fmt))
    setattr(handler, _HANDLER_MARKER, True)
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    return handler
