"""Unit tests for the logging layer."""

from __future__ import annotations

import json
import logging
import sys

from esmart_switch.correlation import correlation_context
from esmart_switch.logging_abstraction import HumanReadableFormatter, JSONFormatter, get_logger


def _record(msg="publishing %s", args=("ON",), context=None):
    record = logging.LogRecord("esmart_switch.test", logging.INFO, __file__, 10, msg, args, None)
    if context is not None:
        record.switch_context = context
    return record


class TestJSONFormatter:
    """Tests for JSONFormatter"""

    def test_fields(self):
        with correlation_context("abcdef1234567890"):
            line = JSONFormatter().format(_record(context={"topic": "cmnd/messi/POWER"}))

        data = json.loads(line)
        assert data["message"] == "publishing ON"
        assert data["level"] == "INFO"
        assert data["correlation_id"] == "abcdef1234567890"
        assert data["context"] == {"topic": "cmnd/messi/POWER"}


class TestHumanReadableFormatter:
    """Tests for HumanReadableFormatter"""

    def test_short_correlation_tag(self):
        with correlation_context("abcdef1234567890"):
            line = HumanReadableFormatter().format(_record())

        assert "[abcdef12]" in line
        assert line.endswith("> publishing ON")

    def test_placeholder_without_correlation(self):
        with correlation_context(auto_generate=False):
            line = HumanReadableFormatter().format(_record(context={"slot": 1}))

        assert "[--------]" in line
        assert line.endswith("| slot=1")


class TestGetLogger:
    """Tests for get_logger"""

    def test_handlers_configured_once(self):
        first = get_logger("esmart_switch.test_once", log_format="human", human_output="stderr")
        second = get_logger("esmart_switch.test_once", log_format="human", human_output="stderr")

        assert len(second.handlers) == 1
        assert first.logger is second.logger
        handler = second.handlers[0]
        assert isinstance(handler, logging.StreamHandler)
        assert handler.stream is sys.stderr

    def test_json_file_output(self, tmp_path):
        path = tmp_path / "logs" / "switch.json"
        log = get_logger("esmart_switch.test_json", log_format="json", json_file=path)

        log.warning("link lost: %s", "timeout", extra={"attempt": 2})
        for handler in log.handlers:
            handler.flush()

        data = json.loads(path.read_text().splitlines()[-1])
        assert data["message"] == "link lost: timeout"
        assert data["context"] == {"attempt": 2}
