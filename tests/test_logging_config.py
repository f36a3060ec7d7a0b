"""Tests for log formatting and logger configuration."""

import json
import logging

import pytest

from s3source.logging_config import REDACTED, JsonFormatter, TextFormatter, configure_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(**extra) -> logging.LogRecord:
    record = logging.makeLogRecord({"name": "s3source.test", "levelname": "INFO", "msg": "Resolved client: region=%s", "args": ("us-east-1",)})
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_redacts_secret_extras():
    payload = json.loads(JsonFormatter(service="s3source").format(_record(secret_access_key="very-secret", bucket="images")))

    assert payload["message"] == "Resolved client: region=us-east-1"
    assert payload["service"] == "s3source"
    assert payload["context"] == {"secret_access_key": REDACTED, "bucket": "images"}


def test_text_formatter_redacts_secret_extras():
    line = TextFormatter(service="s3source").format(_record(aws_access_key_id="AKIDVALUE", session_token="tok"))

    assert "AKIDVALUE" not in line
    assert "session_token='******'" in line
    assert "message=Resolved client: region=us-east-1" in line


def test_unset_secret_extras_stay_none():
    payload = json.loads(JsonFormatter(service="s3source").format(_record(access_key_id=None)))
    assert payload["context"] == {"access_key_id": None}


def test_configure_logging_quiets_aws_loggers(monkeypatch):
    monkeypatch.setenv("BOTOCORE_LOG_LEVEL", "error")
    configure_logging(level="debug")

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("botocore").level == logging.ERROR
    assert logging.getLogger("urllib3").level == logging.ERROR


def test_configure_logging_json_switch(monkeypatch):
    monkeypatch.setenv("LOG_JSON", "true")
    configure_logging(service="s3source.test")

    handler = logging.getLogger().handlers[0]
    assert isinstance(handler.formatter, JsonFormatter)
