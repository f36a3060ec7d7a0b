from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any


_RECORD_ATTRIBUTES = frozenset(logging.makeLogRecord({}).__dict__)
_SECRET_MARKERS = ("secret", "access_key", "token", "password")
_AWS_LOGGERS = ("botocore", "boto3", "urllib3")
_TRUTHY = {"1", "true", "yes", "on"}
REDACTED = "******"


def _redact(name: str, value: Any) -> Any:
    if value is None:
        return None
    lowered = name.lower()
    return REDACTED if any(marker in lowered for marker in _SECRET_MARKERS) else value


class _RedactingFormatter(logging.Formatter):
    """Base for the stdout formatters: ``extra=`` fields with secret-looking names are masked."""

    def __init__(self, service: str) -> None:
        super().__init__()
        self.service = service

    def context(self, record: logging.LogRecord) -> dict[str, Any]:
        return {
            key: _redact(key, value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRIBUTES and not key.startswith("_")
        }


class JsonFormatter(_RedactingFormatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "service": self.service,
            "message": record.getMessage(),
        }
        context = self.context(record)
        if context:
            payload["context"] = context
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, separators=(",", ":"))


class TextFormatter(_RedactingFormatter):
    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S%z")
        parts = [timestamp, record.levelname, record.name, f"service={self.service}", f"message={record.getMessage()}"]
        parts.extend(f"{key}={value!r}" for key, value in sorted(self.context(record).items()))
        line = " ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def _level(name: str | None, default: int) -> int:
    return getattr(logging, (name or "").upper(), default)


def configure_logging(level: str | None = None, service: str = "s3source") -> None:
    """
    Route all logging to stdout for ``service``.

    LOG_LEVEL sets the root level, LOG_JSON switches to one JSON object per
    line, and BOTOCORE_LOG_LEVEL (default WARNING) keeps the AWS SDK loggers
    from flooding the output with request traces that may carry signed headers.
    """
    use_json = os.getenv("LOG_JSON", "").strip().lower() in _TRUTHY
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(JsonFormatter(service) if use_json else TextFormatter(service))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(_level(level or os.getenv("LOG_LEVEL"), logging.INFO))

    aws_level = _level(os.getenv("BOTOCORE_LOG_LEVEL"), logging.WARNING)
    for name in _AWS_LOGGERS:
        logging.getLogger(name).setLevel(aws_level)
    logging.captureWarnings(True)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def with_context(logger: logging.Logger, **context: Any) -> logging.LoggerAdapter:
    return logging.LoggerAdapter(logger, extra=context)
