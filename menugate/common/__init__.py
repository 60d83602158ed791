"""Common utilities for menugate."""

from .logger import configure_logging, setup_logger

__all__ = ["configure_logging", "setup_logger"]
