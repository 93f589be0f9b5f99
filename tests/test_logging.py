"""Tests for the logger factory."""

import json
import logging

from fluentrecords.utils.logging import JsonFormatter, get_logger


def test_get_logger_does_not_stack_handlers():
    """Test that repeated calls reuse the configured logger."""
    first = get_logger("fluentrecords.tests.stacking")
    second = get_logger("fluentrecords.tests.stacking")

    assert first is second
    assert len(second.handlers) == 1


def test_level_from_environment(monkeypatch):
    """Test FLUENTRECORDS_LOG_LEVEL."""
    monkeypatch.setenv("FLUENTRECORDS_LOG_LEVEL", "debug")

    logger = get_logger("fluentrecords.tests.level")

    assert logger.level == logging.DEBUG


def test_json_format_from_environment(monkeypatch):
    """Test FLUENTRECORDS_LOG_FORMAT=json."""
    monkeypatch.setenv("FLUENTRECORDS_LOG_FORMAT", "json")

    logger = get_logger("fluentrecords.tests.json")

    assert isinstance(logger.handlers[0].formatter, JsonFormatter)


def test_json_formatter_output():
    """Test that JSON records carry level, logger and message."""
    record = logging.LogRecord(
        name="fluentrecords.sample",
        level=logging.WARNING,
        pathname=__file__,
        lineno=10,
        msg="News %s not found",
        args=(99,),
        exc_info=None,
    )

    payload = json.loads(JsonFormatter().format(record))

    assert payload["level"] == "WARNING"
    assert payload["logger"] == "fluentrecords.sample"
    assert payload["message"] == "News 99 not found"
    assert payload["timestamp"].endswith("Z")
