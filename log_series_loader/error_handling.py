from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Union


class ErrorSeverity(Enum):
    """Enumeration for error severity levels"""

    CRITICAL = "CRITICAL"  # Processing cannot continue
    ERROR = "ERROR"  # The file (and the request) was aborted
    WARNING = "WARNING"  # Rows or cells degraded, processing continued
    INFO = "INFO"  # Informational message


class ValidationError(Exception):
    """Error raised when configuration or dataset validation fails."""

    def __init__(
        self,
        message: str,
        validation_type: str = "general",
        details: Optional[Dict[str, Any]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize a ValidationError.

        Args:
            message: Error message
            validation_type: Type of validation that failed
            details: Detailed information about the validation failure
            context: Additional context information
        """
        self.validation_type = validation_type
        self.details = details or {}
        self.context = context or {}

        full_message = f"{validation_type.capitalize()} validation error: {message}"
        super().__init__(full_message)


class LogParsingError(Exception):
    """Base class for every fatal, per-file parsing failure."""

    def __init__(
        self,
        filepath: Optional[Union[str, Path]],
        reason: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize a LogParsingError.

        Args:
            filepath: Name or path of the file that failed to parse
            reason: Reason for parsing failure
            context: Additional context information
        """
        self.filepath = Path(filepath) if filepath else None
        self.reason = reason
        self.context = context or {}

        message = f"Failed to parse file: {reason}"
        if self.filepath:
            message = f"Failed to parse file {self.filepath.name}: {reason}"

        super().__init__(message)

    def with_filepath(self, filepath: Union[str, Path]) -> "LogParsingError":
        """Return a copy of this error attributed to ``filepath``."""
        return type(self)(filepath=filepath, reason=self.reason, context=self.context)


class MalformedTableError(LogParsingError):
    """The delimited reader found a structural error, e.g. an unterminated quote."""


class HeaderNotFoundError(LogParsingError):
    """No row of the grid has enough non-empty cells to be a header."""


class InvalidHeaderError(LogParsingError):
    """A header was found but it has fewer columns than date, time and one series."""


class NoValidTimestampsError(LogParsingError):
    """Every data row failed timestamp composition."""


class UnsupportedFormatError(LogParsingError):
    """Neither the file extension nor the content type selects a reader."""


class ProcessingError:
    """Record of an error or degradation observed while processing files."""

    def __init__(
        self,
        timestamp: datetime = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        error_type: str = "ProcessingError",
        message: str = "An error occurred during processing",
        file_path: Optional[Union[str, Path]] = None,
        details: Optional[Dict[str, Any]] = None,
        stacktrace: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize a ProcessingError.

        Args:
            timestamp: When the error occurred (defaults to now)
            severity: Error severity level
            error_type: Type of error
            message: Error message
            file_path: File that caused the error (if applicable)
            details: Additional error details
            stacktrace: Exception stacktrace
            context: Contextual information about the processing state
        """
        self.timestamp = timestamp or datetime.now()
        self.severity = severity
        self.error_type = error_type
        self.message = message
        self.file_path = Path(file_path) if file_path else None
        self.details = details or {}
        self.stacktrace = stacktrace
        self.context = context or {}

    def __str__(self) -> str:
        """String representation of the error."""
        result = f"[{self.severity.value.upper()}] {self.error_type}: {self.message}"
        if self.file_path:
            result += f" (File: {self.file_path})"
        return result

    def to_dict(self, include_stacktrace: bool = False) -> Dict[str, Any]:
        """Convert error to dictionary for serialization."""
        error_dict = {
            "timestamp": self.timestamp.isoformat(),
            "severity": self.severity.value,
            "error_type": self.error_type,
            "message": self.message,
            "file_path": str(self.file_path) if self.file_path else None,
            "details": self.details,
            "context": self.context,
        }

        if include_stacktrace and self.stacktrace:
            error_dict["stacktrace"] = self.stacktrace

        return error_dict
