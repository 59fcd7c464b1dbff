"""
Custom exceptions for selpg.

This module defines all custom exceptions used throughout the application.
Every exception here is fatal for a run and maps to exit code 2 at the CLI.
"""

from typing import Any, Optional


class SelpgException(Exception):
    """Base exception for all selpg-specific errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            details: Optional dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# Invocation Exceptions
# =============================================================================


class UsageError(SelpgException):
    """Conflicting, missing or out-of-range command line options."""

    pass


class ConfigurationError(SelpgException):
    """Invalid value in the environment configuration."""

    def __init__(self, name: str, value: Any) -> None:
        """Initialize with the offending setting."""
        message = f"Invalid value {value!r} for setting '{name}'"
        super().__init__(message, {"name": name, "value": value})


# =============================================================================
# Stream Exceptions
# =============================================================================


class InputError(SelpgException):
    """Input could not be opened or read."""

    pass


class PageRangeError(SelpgException):
    """The requested page interval produced no output."""

    def __init__(self, start_page: int, end_page: int) -> None:
        """Initialize with the requested interval."""
        super().__init__(
            "page number out of file range or input stream is empty",
            {"start_page": start_page, "end_page": end_page},
        )


class OutputError(SelpgException):
    """Filtered output could not be written."""

    pass


# =============================================================================
# Print Consumer Exceptions
# =============================================================================


class PrinterError(SelpgException):
    """Base exception for print consumer failures."""

    pass


class PrinterSpawnError(PrinterError):
    """The print consumer process could not be started."""

    def __init__(self, command: list[str], error: str) -> None:
        """Initialize with command information."""
        message = f"Failed to start print command '{' '.join(command)}': {error}"
        super().__init__(message, {"command": command})


class PrinterRelayError(PrinterError):
    """Copying the consumer's output back to the caller failed."""

    pass


class PrinterExitError(PrinterError):
    """The print consumer exited with a nonzero status."""

    def __init__(self, command: list[str], returncode: int) -> None:
        """Initialize with exit information."""
        message = f"Print command '{' '.join(command)}' exited with status {returncode}"
        super().__init__(message, {"returncode": returncode})
        self.returncode = returncode
