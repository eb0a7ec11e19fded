"""Unit tests for logging configuration."""

import io
import json
import logging
from collections.abc import Iterator

import pytest
import structlog

from stockwatch.observability import (
    bind_pass_context,
    clear_pass_context,
    configure_logging,
)


@pytest.fixture(autouse=True)
def reset_structlog() -> Iterator[None]:
    """Restore structlog and library loggers after each test."""
    yield
    clear_pass_context()
    structlog.reset_defaults()
    for name in ("apscheduler", "httpx"):
        library_logger = logging.getLogger(name)
        library_logger.handlers = []
        library_logger.propagate = True
        library_logger.setLevel(logging.NOTSET)


def _events(stream: io.StringIO) -> list[dict[str, object]]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line]


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_json_events(self) -> None:
        """Test events are written as JSON lines with level and timestamp."""
        stream = io.StringIO()
        configure_logging(output=stream)

        structlog.get_logger().info("item_checked", url="https://shop/x")

        (event,) = _events(stream)
        assert event["event"] == "item_checked"
        assert event["url"] == "https://shop/x"
        assert event["level"] == "info"
        assert "timestamp" in event

    def test_level_filters_events(self) -> None:
        """Test events below the configured level are dropped."""
        stream = io.StringIO()
        configure_logging(level=logging.WARNING, output=stream)

        log = structlog.get_logger()
        log.info("quiet")
        log.warning("loud")

        assert [e["event"] for e in _events(stream)] == ["loud"]

    def test_httpx_quiet_unless_debug(self) -> None:
        """Test httpx request logs only show at debug level."""
        configure_logging(level=logging.INFO, output=io.StringIO())
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("apscheduler").level == logging.INFO

        configure_logging(level=logging.DEBUG, output=io.StringIO())
        assert logging.getLogger("httpx").level == logging.DEBUG

    def test_library_logs_share_stream(self) -> None:
        """Test apscheduler logs go to the configured stream."""
        stream = io.StringIO()
        configure_logging(output=stream)

        logging.getLogger("apscheduler").warning("job missed")

        assert "WARNING apscheduler: job missed" in stream.getvalue()


class TestPassContext:
    """Tests for pass context binding."""

    def test_bound_context_tags_events(self) -> None:
        """Test events carry kind and pass_id until the context is cleared."""
        stream = io.StringIO()
        configure_logging(output=stream)
        log = structlog.get_logger()

        bind_pass_context("price", "pass-1")
        log.info("inside")
        clear_pass_context()
        log.info("outside")

        inside, outside = _events(stream)
        assert inside["kind"] == "price"
        assert inside["pass_id"] == "pass-1"
        assert "kind" not in outside
        assert "pass_id" not in outside
