"""Status table exceptions."""

from __future__ import annotations


class StatusTableError(Exception):
    """Base exception for status table errors."""

    def __init__(self, message: str, details: str | None = None) -> None:
        """Initialize exception.

        Args:
            message: Error message.
            details: Additional details.
        """
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidArgumentError(StatusTableError, ValueError):
    """Raised when a configuration value or call argument is malformed."""


class NotReadyError(StatusTableError, RuntimeError):
    """Raised when the table is used before it is configured or has no usable terminal."""
