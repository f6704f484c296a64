"""Logging setup utilities for papernote.

Configures logging for the entire application based on the logging
configuration settings.
"""

from __future__ import annotations

import logging
import sys

from papernote.config.settings import LoggingConfig

# SDK loggers that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "anthropic")


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure logging for the papernote application.

    Sets up the 'papernote' logger with the specified level, format, and
    optional file handler, and quiets the HTTP and LLM SDK loggers
    unless running at DEBUG. Calling it again replaces the handlers it
    installed previously instead of stacking duplicates.

    Args:
        config: Logging configuration. If None, uses defaults
                (INFO level, stderr output).
    """
    if config is None:
        config = LoggingConfig()

    root_logger = logging.getLogger("papernote")
    root_logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(config.format)

    # Console handler
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # File handler (optional)
    if config.file:
        file_handler = logging.FileHandler(config.file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Request logs from the SDKs only show up when debugging
    sdk_level = logging.DEBUG if root_logger.level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(sdk_level)

    root_logger.debug("Logging initialized at %s level", config.level)
