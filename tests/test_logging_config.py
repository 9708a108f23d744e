"""Tests for logging configuration and formatters."""

import json
import logging

import pytest

from task_notifier.logging import ComponentLoggerAdapter, get_logger
from task_notifier.logging.config import (
    SERVICE_NAME,
    ContextualFilter,
    JSONFormatter,
    KeyValueFormatter,
    configure_logging,
)
from task_notifier.logging.context import log_context


@pytest.fixture
def logger():
    """Create a test logger with handler for capturing output."""
    test_logger = logging.getLogger("test_logger")
    test_logger.setLevel(logging.DEBUG)
    test_logger.handlers.clear()

    yield test_logger

    test_logger.handlers.clear()


@pytest.fixture
def restore_root_logger():
    """configure_logging replaces root handlers; put the originals back."""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)


def make_record(logger, message="Test message", extra=None):
    return logger.makeRecord("test", logging.INFO, "test.py", 1, message, (), None, extra=extra)


def test_json_formatter_basic(logger):
    output = JSONFormatter().format(make_record(logger))
    log_obj = json.loads(output)

    assert log_obj["level"] == "INFO"
    assert log_obj["message"] == "Test message"
    assert "timestamp" in log_obj


def test_json_formatter_with_extra_fields(logger):
    record = make_record(
        logger,
        "Notification captured",
        extra={"event": "notification.captured", "sequence": 3, "retryable": False},
    )

    log_obj = json.loads(JSONFormatter().format(record))

    assert log_obj["event"] == "notification.captured"
    assert log_obj["sequence"] == 3
    assert log_obj["retryable"] is False


def test_json_formatter_stringifies_unknown_types(logger):
    record = make_record(logger, extra={"payload": object()})

    log_obj = json.loads(JSONFormatter().format(record))

    assert isinstance(log_obj["payload"], str)


def test_timestamp_format_in_json(logger):
    log_obj = json.loads(JSONFormatter().format(make_record(logger)))

    timestamp = log_obj["timestamp"]
    assert timestamp.endswith("Z")
    assert len(timestamp) == 24  # 2025-11-04T10:30:00.123Z


def test_json_formatter_no_duplicate_fields(logger):
    log_obj = json.loads(JSONFormatter().format(make_record(logger, extra={"event": "x"})))

    assert "name" not in log_obj
    assert "msg" not in log_obj
    assert log_obj["event"] == "x"


def test_contextual_filter_adds_static_fields(logger):
    record = make_record(logger)

    assert ContextualFilter(environment="test").filter(record) is True
    assert record.service == SERVICE_NAME
    assert record.environment == "test"


def test_contextual_filter_adds_context_fields(logger):
    with log_context(task_id=7, job_id="ab12"):
        record = make_record(logger)
        ContextualFilter().filter(record)

    assert record.task_id == 7
    assert record.job_id == "ab12"


def test_contextual_filter_explicit_extra_wins(logger):
    with log_context(job_id="from-context"):
        record = make_record(logger, extra={"job_id": "from-call"})
        ContextualFilter().filter(record)

    assert record.job_id == "from-call"


def test_json_formatter_with_context(logger):
    with log_context(task_id=7, owner_id=1):
        record = make_record(logger, "Task created", extra={"event": "task.created"})
        ContextualFilter(environment="test").filter(record)

    log_obj = json.loads(JSONFormatter().format(record))

    assert log_obj["event"] == "task.created"
    assert log_obj["task_id"] == 7
    assert log_obj["owner_id"] == 1
    assert log_obj["service"] == SERVICE_NAME


def test_key_value_formatter_basic(logger):
    output = KeyValueFormatter("%(levelname)s %(message)s").format(make_record(logger))

    assert output == "INFO Test message"


def test_key_value_formatter_with_extras(logger):
    record = make_record(
        logger,
        extra={"event": "notification.enqueued", "recipient": "a b", "retryable": True, "error": None},
    )

    output = KeyValueFormatter("%(message)s").format(record)

    assert "event=notification.enqueued" in output
    assert 'recipient="a b"' in output
    assert "retryable=true" in output
    assert "error=null" in output


def test_key_value_formatter_skips_static_fields(logger):
    record = make_record(logger)
    ContextualFilter(environment="test").filter(record)

    output = KeyValueFormatter("%(message)s").format(record)

    assert "service=" not in output
    assert "environment=" not in output


def test_configure_logging_invalid_level():
    with pytest.raises(ValueError, match="Invalid log level"):
        configure_logging(level="INVALID")


def test_configure_logging_invalid_format():
    with pytest.raises(ValueError, match="Invalid log format"):
        configure_logging(format_type="invalid")


def test_configure_logging_json_format(restore_root_logger):
    configure_logging(level="DEBUG", format_type="json", environment="test")

    root_logger = logging.getLogger()
    assert root_logger.level == logging.DEBUG
    assert len(root_logger.handlers) == 1
    assert isinstance(root_logger.handlers[0].formatter, JSONFormatter)


def test_configure_logging_key_value_format(restore_root_logger):
    configure_logging(level="info", format_type="key-value", environment="test")

    root_logger = logging.getLogger()
    assert root_logger.level == logging.INFO
    assert isinstance(root_logger.handlers[0].formatter, KeyValueFormatter)


class TestGetLogger:
    def test_plain_logger_without_component(self):
        assert isinstance(get_logger("plain"), logging.Logger)

    def test_component_is_merged_into_extra(self):
        adapter = get_logger("with.component", component="delivery")

        assert isinstance(adapter, ComponentLoggerAdapter)
        _, kwargs = adapter.process("msg", {"extra": {"event": "x"}})
        assert kwargs["extra"] == {"component": "delivery", "event": "x"}

    def test_call_site_component_wins(self):
        adapter = get_logger("with.component", component="delivery")

        _, kwargs = adapter.process("msg", {"extra": {"component": "worker"}})
        assert kwargs["extra"]["component"] == "worker"
