"""Logging configuration for status_table."""

from status_table.logging.config import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
