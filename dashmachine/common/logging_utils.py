"""
Logging utilities for consistent logging setup across dashmachine.
"""

from __future__ import annotations

import logging

PACKAGE_LOGGER = "dashmachine"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logger(logger: logging.Logger | None, log_level: int) -> logging.Logger:
    """
    Attach a StreamHandler with the standard formatter, once per logger.

    Args:
        logger: Logger to configure, the package logger when None
        log_level: The logging level to set

    Returns:
        The configured logger
    """
    if logger is None:
        logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(log_level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(log_level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    return logger


def key_hint(value: str | None) -> str:
    """Shorten public key material or payloads for log output."""
    if not value:
        return "<none>"
    if len(value) <= 12:  # noqa: PLR2004
        return value
    return f"{value[:8]}...{value[-4:]}"
