"""Tests for JSON logging."""

import json
import logging
from io import StringIO

import pytest

from reqcache.core.logging import _JsonFormatter, get_logger, setup_logging


@pytest.fixture
def captured():
    """Attach a JSON handler to a dedicated logger."""
    logger = get_logger("test.json")
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(_JsonFormatter())
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    yield logger, stream
    logger.removeHandler(handler)


def test_setup_logging_creates_handler():
    """Test that setup_logging adds a handler."""
    root = logging.getLogger()
    initial_handlers = len(root.handlers)
    setup_logging()
    assert len(root.handlers) >= initial_handlers


def test_setup_logging_is_idempotent():
    """Test that repeated setup does not stack handlers."""
    setup_logging()
    count = len(logging.getLogger().handlers)
    setup_logging()
    assert len(logging.getLogger().handlers) == count


def test_get_logger_returns_logger():
    """Test that get_logger returns a logger instance."""
    logger = get_logger("test")
    assert isinstance(logger, logging.Logger)
    assert logger.name == "test"


def test_json_formatter_produces_json(captured):
    """Test that logs are formatted as JSON."""
    logger, stream = captured
    logger.info("Test message")

    parsed = json.loads(stream.getvalue().strip())
    assert parsed["level"] == "INFO"
    assert parsed["logger"] == "test.json"
    assert parsed["msg"] == "Test message"
    assert "context" not in parsed


def test_json_formatter_includes_context(captured):
    """Test that extra context is emitted, including non-JSON values."""
    logger, stream = captured
    logger.warning("Validation error", extra={"context": {"path": "/x", "body": {1, 2}}})

    parsed = json.loads(stream.getvalue().strip())
    assert parsed["context"]["path"] == "/x"
    assert isinstance(parsed["context"]["body"], str)


def test_json_formatter_includes_exc_info(captured):
    """Test that exceptions are rendered into the payload."""
    logger, stream = captured
    try:
        raise KeyError("k")
    except KeyError:
        logger.exception("failed")

    parsed = json.loads(stream.getvalue().strip())
    assert "KeyError" in parsed["exc_info"]
