"""
Tests for structured logging setup.
"""

import io
import json
import logging

import pytest
import structlog
from pythonjsonlogger import jsonlogger
from structlog.testing import capture_logs

from porpoise.cache.interface import CacheStats
from porpoise.core.error_handling import BackendUnavailableError
from porpoise.logging_config import (
    get_logger,
    log_cache_stats,
    log_error,
    setup_json_logging,
)


@pytest.fixture
def restore_logging():
    """Undo global logging changes made by a test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


def test_setup_json_logging(restore_logging):
    """Test the root logger emits JSON and global context is bound."""
    setup_json_logging(log_level="debug", environment="staging")

    root = logging.getLogger()
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1
    assert isinstance(root.handlers[0].formatter, jsonlogger.JsonFormatter)

    context = structlog.contextvars.get_contextvars()
    assert context["service"] == "porpoise-cache"
    assert context["environment"] == "staging"


def test_stdlib_records_render_as_json(restore_logging):
    """Test cache module loggers write JSON lines to the configured stream."""
    stream = io.StringIO()
    setup_json_logging(stream=stream)

    logging.getLogger("porpoise.cache.store").info("Cache cleared")

    record = json.loads(stream.getvalue().splitlines()[-1])
    assert record["message"] == "Cache cleared"
    assert record["name"] == "porpoise.cache.store"
    assert record["levelname"] == "INFO"


def test_environment_from_env(restore_logging, monkeypatch):
    monkeypatch.setenv("PORPOISE_ENVIRONMENT", "production")

    setup_json_logging()

    assert structlog.contextvars.get_contextvars()["environment"] == "production"


def test_log_error_includes_porpoise_metadata(restore_logging):
    """Test porpoise errors contribute component and context."""
    error = BackendUnavailableError("down", component="redis_adapter", context={"op": "get"})

    with capture_logs() as logs:
        log_error(get_logger("test"), error, "cache_read_failed", key="foo")

    assert len(logs) == 1
    entry = logs[0]
    assert entry["event"] == "cache_read_failed"
    assert entry["log_level"] == "error"
    assert entry["error_type"] == "BackendUnavailableError"
    assert entry["component"] == "redis_adapter"
    assert entry["error_context"] == {"op": "get"}
    assert entry["key"] == "foo"


def test_log_error_plain_exception(restore_logging):
    with capture_logs() as logs:
        log_error(get_logger("test"), ValueError("nope"), "unexpected")

    assert logs[0]["error_type"] == "ValueError"
    assert logs[0]["component"] is None


def test_log_cache_stats(restore_logging):
    stats = CacheStats(hits=3, misses=1, evictions=2, size=5)

    with capture_logs() as logs:
        log_cache_stats(get_logger("test"), "users", stats)

    entry = logs[0]
    assert entry["event"] == "cache_stats"
    assert entry["namespace"] == "users"
    assert entry["hits"] == 3
    assert entry["hit_rate"] == 0.75
