"""Tests for the shared console logging setup."""

from __future__ import annotations

import logging

import pytest

from linkray.logging_setup import configure_logging


@pytest.fixture()
def linkray_logger():
    logger = logging.getLogger("linkray")
    level, handlers, propagate = logger.level, list(logger.handlers), logger.propagate
    logger.handlers = []
    yield logger
    logger.setLevel(level)
    logger.handlers = handlers
    logger.propagate = propagate


class TestConfigureLogging:
    def test_level_is_case_insensitive(self, linkray_logger) -> None:
        configure_logging("debug")
        assert linkray_logger.level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self, linkray_logger) -> None:
        configure_logging("LOUD")
        assert linkray_logger.level == logging.INFO

    def test_handler_added_once(self, linkray_logger) -> None:
        configure_logging("INFO")
        configure_logging("WARNING")
        assert len(linkray_logger.handlers) == 1
        assert linkray_logger.level == logging.WARNING
