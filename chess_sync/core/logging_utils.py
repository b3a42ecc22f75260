"""Logger configuration for the chess_sync logger tree."""

from __future__ import annotations

import logging
import sys

ROOT_LOGGER_NAME = "chess_sync"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(name: str = ROOT_LOGGER_NAME, level: int | str = logging.INFO) -> logging.Logger:
    """Logger with a single stdout handler. Calling it again for the same name does not stack handlers."""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger
    logger.setLevel(level)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return logger


def configure_logging(level: int | str = logging.INFO) -> logging.Logger:
    """Configure the package root logger; module loggers (logging.getLogger(__name__)) propagate to it."""
    logger = get_logger(ROOT_LOGGER_NAME, level)
    logger.setLevel(level)
    return logger
