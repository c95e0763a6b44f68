"""
Unit tests for the logging module.
"""

from __future__ import annotations

import json
import logging

from preflight.observability import (
    HumanReadableFormatter,
    PreflightLogger,
    StructuredFormatter,
    configure_logging,
    get_logger,
)


def _record(message: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="preflight.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredFormatter:
    """Tests for StructuredFormatter."""

    def test_json_output(self):
        """Records are rendered as JSON objects."""
        data = json.loads(StructuredFormatter().format(_record()))

        assert data["level"] == "info"
        assert data["logger"] == "preflight.test"
        assert data["message"] == "hello"
        assert data["timestamp"].endswith("Z")

    def test_extra_fields_included(self):
        """Fields passed through extra are copied into the output."""
        data = json.loads(StructuredFormatter().format(_record(event_type="check.passed")))

        assert data["event_type"] == "check.passed"

    def test_configured_fields(self):
        """Configured extra fields appear in every record."""
        formatter = StructuredFormatter(include_timestamp=False, extra_fields={"env": "ci"})
        data = json.loads(formatter.format(_record()))

        assert data["env"] == "ci"
        assert "timestamp" not in data


class TestHumanReadableFormatter:
    """Tests for HumanReadableFormatter."""

    def test_text_output(self):
        """Records are rendered as a single line."""
        output = HumanReadableFormatter(use_colors=False).format(_record("checking"))

        assert "INFO" in output
        assert "preflight.test: checking" in output


class TestPreflightLogger:
    """Tests for PreflightLogger."""

    def test_get_logger_prefixes_name(self):
        """Logger names are placed under the preflight hierarchy."""
        assert get_logger("checks").logger.name == "preflight.checks"
        assert get_logger("preflight.checkers.base").logger.name == "preflight.checkers.base"

    def test_context_attached(self, caplog):
        """Context fields are attached to records."""
        logger = PreflightLogger("preflight.test.context")
        logger.set_context(cloud="aws")

        with caplog.at_level(logging.INFO, logger="preflight.test.context"):
            logger.info("message")

        assert caplog.records[-1].cloud == "aws"

    def test_check_events(self, caplog):
        """Check events carry their event type."""
        logger = PreflightLogger("preflight.test.events")

        with caplog.at_level(logging.DEBUG, logger="preflight.test.events"):
            logger.check_started("aws", "role")
            logger.check_failed("aws", "role", "boom")
            logger.pod_created("crossplane", "pod")
            logger.pod_deleted("crossplane", "pod")

        events = [record.event_type for record in caplog.records]
        assert events == ["check.started", "check.failed", "pod.created", "pod.deleted"]
        assert caplog.records[2].getMessage() == "created crossplane/pod Pod"


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_json_handler(self):
        """JSON format installs a StructuredFormatter."""
        configure_logging(level="DEBUG", format="json")
        root = logging.getLogger("preflight")

        try:
            assert root.level == logging.DEBUG
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, StructuredFormatter)
        finally:
            configure_logging()
