"""Tests for structured logging setup."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from netnotes.core.logging import (
    _NOISE_LOGGERS,
    _capture_context,
    add_capture_context,
    add_otel_context,
    capture_context,
    configure_logging,
    get_capture_context,
)

pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def _reset_logging():
    """Reset logging and capture context between tests."""
    token = _capture_context.set(None)
    yield
    _capture_context.reset(token)
    root = logging.getLogger()
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    root.setLevel(logging.WARNING)
    structlog.reset_defaults()


class TestCaptureContext:
    def test_default_is_none(self):
        assert get_capture_context() is None

    def test_scoped(self):
        with capture_context("abc"):
            assert get_capture_context() == "abc"
        assert get_capture_context() is None

    def test_processor_injects_session(self):
        with capture_context("abc"):
            result = add_capture_context(None, "info", {"event": "x"})
        assert result["capture_session"] == "abc"

    def test_processor_skips_when_unset(self):
        assert "capture_session" not in add_capture_context(None, "info", {"event": "x"})


class TestAddOtelContext:
    def test_no_span_adds_nothing(self):
        result = add_otel_context(None, "info", {"event": "x"})
        assert "trace_id" not in result
        assert "span_id" not in result


class TestConfigureLogging:
    def test_installs_processor_formatter(self):
        configure_logging(level="debug", fmt="text")
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)
        assert root.level == logging.DEBUG

    def test_reconfiguration_does_not_duplicate_handlers(self):
        configure_logging()
        configure_logging()
        assert len(logging.getLogger().handlers) == 1

    def test_noise_loggers_clamped(self):
        configure_logging(level="DEBUG")
        for name in _NOISE_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_json_file_output(self, tmp_path):
        configure_logging(level="INFO", fmt="json", log_root=tmp_path, app_name="jots")
        with capture_context("sess-1"):
            logging.getLogger("netnotes.test").info("hello %s", "world")
        for handler in logging.getLogger().handlers:
            handler.flush()

        lines = (tmp_path / "jots.log").read_text().strip().splitlines()
        record = json.loads(lines[-1])
        assert record["event"] == "hello world"
        assert record["capture_session"] == "sess-1"
        assert record["level"] == "info"
        assert record["logger"] == "netnotes.test"
