"""Logging setup for the webterminal server and CLI.

Everything under the ``webterminal`` logger goes to stderr and, when
``logging.file`` is set, to a log file as well.
"""

from __future__ import annotations

import logging
import sys

from webterminal.config.settings import LoggingConfig

APP_LOGGER = "webterminal"


def setup_logging(config: LoggingConfig | None = None, verbose: bool = False) -> logging.Logger:
    """Configure the application logger and return it.

    Handlers already on the logger are replaced, so calling this again
    never duplicates log lines.

    Args:
        config: Logging section of the settings. Defaults to INFO on stderr.
        verbose: Log at DEBUG whatever the configured level is.
    """
    config = config or LoggingConfig()
    level_name = "DEBUG" if verbose else config.level.upper()

    app_logger = logging.getLogger(APP_LOGGER)
    app_logger.setLevel(getattr(logging, level_name, logging.INFO))

    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if config.file:
        handlers.append(logging.FileHandler(config.file))

    formatter = logging.Formatter(config.format)
    for handler in handlers:
        handler.setFormatter(formatter)
        app_logger.addHandler(handler)

    app_logger.debug("Logging to %d handler(s) at %s", len(handlers), level_name)
    return app_logger
