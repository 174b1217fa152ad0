"""Tests for the shared logger factory."""
import logging

from cartpilot_sdk.logging import LOG_FORMAT, get_logger


def test_handler_is_attached_once():
    first = get_logger("tests.logging.once")
    second = get_logger("tests.logging.once")

    assert first is second
    assert len(first.handlers) == 1
    assert first.handlers[0].formatter._fmt == LOG_FORMAT
    assert first.level == logging.INFO


def test_level_can_be_changed_by_name():
    logger = get_logger("tests.logging.level", level="debug")

    assert logger.level == logging.DEBUG

    get_logger("tests.logging.level")
    assert logger.level == logging.DEBUG

    get_logger("tests.logging.level", level=logging.WARNING)
    assert logger.level == logging.WARNING
