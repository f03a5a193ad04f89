"""Tests for application logging setup."""
import logging
import logging.handlers

from ella_rises.core.logging import LIBRARY_LOG_LEVELS, RequestIDFilter, setup_logging


def test_debug_logs_to_console_only_with_request_ids():
    root = setup_logging()
    assert root.handlers
    assert not any(isinstance(h, logging.handlers.RotatingFileHandler) for h in root.handlers)
    for handler in root.handlers:
        assert any(isinstance(f, RequestIDFilter) for f in handler.filters)


def test_library_loggers_are_held_to_their_levels():
    setup_logging()
    for name, level in LIBRARY_LOG_LEVELS.items():
        assert logging.getLogger(name).level == level


def test_records_without_request_id_get_placeholder():
    record = logging.LogRecord("ella_rises", logging.INFO, __file__, 1, "hello", None, None)
    assert RequestIDFilter().filter(record) is True
    assert record.request_id == "N/A"

    tagged = logging.LogRecord("ella_rises", logging.INFO, __file__, 1, "hello", None, None)
    tagged.request_id = "abc"
    RequestIDFilter().filter(tagged)
    assert tagged.request_id == "abc"
