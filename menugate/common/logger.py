"""Logging setup for menugate.

Every module logs through ``logging.getLogger(__name__)``. Those loggers
propagate to the ``menugate`` package logger, which is the only one that
gets handlers.
"""

import logging
import logging.handlers
import os
from typing import List, Optional

PACKAGE_LOGGER = "menugate"
LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"
LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

ROTATE_BYTES = 10 * 1024 * 1024
ROTATE_KEEP = 5


def _level(value: str) -> int:
    name = value.upper()
    if name not in LEVELS:
        raise ValueError(f"Invalid log level: {value}. Must be one of: {', '.join(LEVELS)}")
    return getattr(logging, name)


def _handlers(name: str, log_dir: Optional[str], console: bool) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                os.path.join(log_dir, f"{name}.log"),
                maxBytes=ROTATE_BYTES,
                backupCount=ROTATE_KEEP,
            )
        )
    if console:
        handlers.append(logging.StreamHandler())
    return handlers


def setup_logger(
    level: str = "INFO",
    log_dir: Optional[str] = None,
    *,
    name: str = PACKAGE_LOGGER,
    console: bool = True,
) -> logging.Logger:
    """
    Attach handlers to the ``name`` logger and set its level.

    A rotating file under ``log_dir`` is added when ``log_dir`` is given.
    Calling this again only changes the level; handlers are attached once.

    Raises:
        ValueError: If ``level`` is not a standard level name
    """
    logger = logging.getLogger(name)
    logger.setLevel(_level(level))
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in _handlers(name, log_dir, console):
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


def configure_logging(settings) -> logging.Logger:
    """Set up the package logger from application settings."""
    return setup_logger(
        settings.log_level,
        settings.log_dir if settings.log_to_file else None,
    )
