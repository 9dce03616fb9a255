"""
Unit tests for structured logging and the logging notifier.

Test Coverage
-------------
- LogContext binds and restores context
- ContextFilter + JSONFormatter output
- LoggingNotifier levels and text
"""

import json
import logging

import pytest

from kpiece.core.logging import (
    LogContext,
    clear_log_context,
    get_log_context,
    set_log_context,
)
from kpiece.core.logging.logger import ContextFilter, JSONFormatter
from kpiece.modules.economy import LoggingNotifier, Notification
from kpiece.modules.economy.notifications import LEVEL_ERROR, LEVEL_SUCCESS, NOTIFICATION_LOGGER


@pytest.fixture(autouse=True)
def clean_context():
    clear_log_context()
    yield
    clear_log_context()


def _record(message="hello %s", args=("world",), **extra):
    record = logging.LogRecord("kpiece.test", logging.INFO, __file__, 10, message, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.mark.unit
class TestLogContext:
    """Context variables for log records."""

    def test_context_is_scoped(self):
        """Values exist inside the block and are gone after it."""
        with LogContext(action="draw", correlation_id="abc12345"):
            context = get_log_context()
            assert context["action"] == "draw"
            assert context["correlation_id"] == "abc12345"

        assert get_log_context() == {}

    @pytest.mark.asyncio
    async def test_async_context(self):
        """The async form behaves like the sync one."""
        async with LogContext(component="economy"):
            assert get_log_context()["component"] == "economy"
            assert len(get_log_context()["correlation_id"]) == 8

        assert get_log_context() == {}

    def test_set_log_context_merges(self):
        set_log_context(session_id="s1")
        set_log_context(action="open_chest")

        assert get_log_context() == {"session_id": "s1", "action": "open_chest"}


@pytest.mark.unit
class TestJSONFormatter:
    """JSON log lines."""

    def test_context_and_extra_fields(self):
        """Context attributes and extras are emitted as JSON fields."""
        # Arrange
        record = _record(reward=100)

        # Act
        with LogContext(action="open_chest", correlation_id="abc12345"):
            ContextFilter().filter(record)
        payload = json.loads(JSONFormatter().format(record))

        # Assert
        assert payload["message"] == "hello world"
        assert payload["level"] == "INFO"
        assert payload["logger"] == "kpiece.test"
        assert payload["action"] == "open_chest"
        assert payload["correlation_id"] == "abc12345"
        assert payload["extra"]["reward"] == 100

    def test_missing_context_is_omitted(self):
        """Placeholder values are not written."""
        record = _record()

        ContextFilter().filter(record)
        payload = json.loads(JSONFormatter().format(record))

        assert "action" not in payload
        assert payload["component"] == "kpiece"


@pytest.mark.unit
class TestLoggingNotifier:
    """Notifications written to the log."""

    def test_success_logs_info(self, caplog):
        caplog.set_level(logging.INFO, logger=NOTIFICATION_LOGGER)

        LoggingNotifier().notify(Notification(LEVEL_SUCCESS, "Treasure Chest", "+100 Berries!"))

        record = caplog.records[-1]
        assert record.levelno == logging.INFO
        assert record.getMessage() == "Treasure Chest: +100 Berries!"

    def test_error_logs_warning(self, caplog):
        caplog.set_level(logging.INFO, logger=NOTIFICATION_LOGGER)

        LoggingNotifier().notify(
            Notification(LEVEL_ERROR, "Crew Full", "Your crew is full (5 max).", "Remove a member")
        )

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.help_text == "Remove a member"
