"""Tests for logging setup."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from webterminal.config.settings import LoggingConfig
from webterminal.utils.logging import setup_logging


@pytest.fixture
def app_logger():
    logger = logging.getLogger("webterminal")
    handlers = list(logger.handlers)
    level = logger.level
    yield logger
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers = handlers
    logger.setLevel(level)


def test_configured_level(app_logger: logging.Logger) -> None:
    setup_logging(LoggingConfig(level="warning"))
    assert app_logger.level == logging.WARNING


def test_verbose_forces_debug(app_logger: logging.Logger) -> None:
    setup_logging(LoggingConfig(level="ERROR"), verbose=True)
    assert app_logger.level == logging.DEBUG


def test_file_handler(app_logger: logging.Logger, tmp_path: Path) -> None:
    log_file = tmp_path / "webterminal.log"
    setup_logging(LoggingConfig(file=str(log_file)))
    logging.getLogger("webterminal.test").info("hello from test")
    for handler in app_logger.handlers:
        handler.flush()
    assert "hello from test" in log_file.read_text()


def test_repeated_setup_does_not_duplicate_handlers(app_logger: logging.Logger) -> None:
    setup_logging(LoggingConfig())
    setup_logging(LoggingConfig())
    assert len(app_logger.handlers) == 1


def test_returns_app_logger(app_logger: logging.Logger) -> None:
    assert setup_logging() is app_logger
