"""Tests for structured event logging and the JSON line formatter."""

import io
import json
import logging

import pytest

from restopulse.adapters.logging import JsonLineFormatter, configure_logging
from restopulse.core.logs import (
    LOGGER_NAME,
    level_for_status,
    log_event,
    log_exception,
)

pytestmark = [pytest.mark.core, pytest.mark.tier(1)]


@pytest.fixture
def log_stream():
    """Route the restopulse logger into a buffer for one test."""
    stream = io.StringIO()
    logger = configure_logging("DEBUG", stream=stream)
    yield stream
    for handler in list(logger.handlers):
        if getattr(handler, "_restopulse_json", False):
            logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


def _lines(stream: io.StringIO) -> list[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines()]


class TestLevelForStatus:
    @pytest.mark.parametrize(
        ("status", "level"),
        [
            (200, "INFO"),
            (302, "INFO"),
            (404, "WARNING"),
            (500, "ERROR"),
            (503, "ERROR"),
        ],
    )
    def test_maps_status_to_level(self, status: int, level: str) -> None:
        assert level_for_status(status) == level


class TestLogEvent:
    def test_renders_structured_fields(self, log_stream: io.StringIO) -> None:
        log_event(
            "api_response",
            request_id="req-1",
            restaurant_id="rest-3",
            method="GET",
            status=200,
        )

        (line,) = _lines(log_stream)
        assert line["event"] == "api_response"
        assert line["level"] == "INFO"
        assert line["request_id"] == "req-1"
        assert line["restaurant_id"] == "rest-3"
        assert line["actor_user_id"] is None
        assert line["metadata"] == {"method": "GET", "status": 200}
        assert line["ts"].endswith("+00:00")

    @pytest.mark.parametrize(
        ("level", "expected"),
        [
            ("WARN", "WARNING"),
            ("warning", "WARNING"),
            ("ERROR", "ERROR"),
            ("odd", "INFO"),
        ],
    )
    def test_level_names(
        self, log_stream: io.StringIO, level: str, expected: str
    ) -> None:
        log_event("ops_alert_check", level=level)
        assert _lines(log_stream)[0]["level"] == expected

    def test_nested_metadata_survives(self, log_stream: io.StringIO) -> None:
        log_event("ops_alert_check", runtime={"rpm_1m": 4})
        assert _lines(log_stream)[0]["metadata"]["runtime"] == {"rpm_1m": 4}

    def test_captured_by_caplog(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            log_event("api_response", request_id="req-2", status=201)

        record = caplog.records[0]
        assert record.getMessage() == "api_response"
        assert record.request_id == "req-2"
        assert record.metadata == {"status": 201}


class TestLogException:
    def test_includes_exception_details(self, log_stream: io.StringIO) -> None:
        try:
            raise RuntimeError("printer offline")
        except RuntimeError:
            log_exception("Alert check failed", request_id="req-9")

        (line,) = _lines(log_stream)
        assert line["level"] == "ERROR"
        assert line["event"] == "exception"
        assert line["metadata"]["request_id"] == "req-9"
        assert line["metadata"]["exc_type"] == "RuntimeError"
        assert line["metadata"]["exc_message"] == "printer offline"
        assert "Traceback" in line["metadata"]["exc_traceback"]


class TestJsonLineFormatter:
    def test_plain_record_uses_message_as_event(self) -> None:
        record = logging.LogRecord(
            "restopulse", logging.WARNING, __file__, 1, "db slow: %sms", (120,), None
        )
        payload = json.loads(JsonLineFormatter().format(record))

        assert payload["event"] == "db slow: 120ms"
        assert payload["level"] == "WARNING"
        assert payload["metadata"] == {}

    def test_scalar_extras_become_metadata(self) -> None:
        record = logging.LogRecord(
            "restopulse", logging.INFO, __file__, 1, "tick", (), None
        )
        record.tenant = "rest-1"
        record.ignored = object()
        payload = json.loads(JsonLineFormatter().format(record))

        assert payload["metadata"] == {"tenant": "rest-1"}


class TestConfigureLogging:
    def test_repeated_calls_do_not_stack_handlers(self) -> None:
        logger = configure_logging("INFO", stream=io.StringIO())
        configure_logging("INFO", stream=io.StringIO())
        try:
            ours = [h for h in logger.handlers if getattr(h, "_restopulse_json", False)]
            assert len(ours) == 1
            assert logger.level == logging.INFO
        finally:
            for handler in list(logger.handlers):
                if getattr(handler, "_restopulse_json", False):
                    logger.removeHandler(handler)
            logger.setLevel(logging.NOTSET)
