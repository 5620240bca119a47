"""Structured exception hierarchy for the database setup layer.

The key-case transformer is total over its input domain and never raises;
everything here belongs to the database glue around it.

Key components:
- **ErrorCode enum**: Standardized error identifiers for programmatic handling
- **Severity enum**: Error classification for monitoring and alerting
- **CasekitError**: Base exception with context, fingerprinting and chaining
- **Specialized exceptions**: Missing connection, transient connection
  failures and fatal migration errors

The retry loop around migrations relies on this hierarchy: a
TransientConnectionError is recovered locally, anything else is fatal.
"""

import hashlib
import traceback
from enum import Enum

from casekit.core.types import ErrorContext


class ErrorCode(Enum):
    """Standardized error codes for casekit."""

    INTERNAL_ERROR = "INTERNAL_ERROR"
    """An unexpected internal error occurred."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    """Settings are missing or inconsistent."""

    MISSING_CONNECTION = "MISSING_CONNECTION"
    """No connection descriptor was supplied."""

    CONNECTION_UNAVAILABLE = "CONNECTION_UNAVAILABLE"
    """The database could not be reached (refused or host not found)."""

    MIGRATION_FAILED = "MIGRATION_FAILED"
    """A schema migration failed for a reason other than connectivity."""


class Severity(Enum):
    """Severity levels for casekit errors."""

    LOW = "LOW"
    """Low severity errors that don't significantly impact functionality."""

    MEDIUM = "MEDIUM"
    """Errors that are expected to resolve themselves, such as a database
    that is still starting up."""

    HIGH = "HIGH"
    """Errors that stop the service from starting."""

    CRITICAL = "CRITICAL"
    """Errors that may leave the schema in an unknown state."""


class CasekitError(Exception):
    """Base exception class for all casekit exceptions.

    Args:
        error_code: Unique identifier for the error type (string or ErrorCode enum)
        message: Human-readable error message
        severity: Severity level of the error (defaults to MEDIUM)
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        error_code: str | ErrorCode,
        message: str,
        severity: Severity = Severity.MEDIUM,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.error_code = (
            error_code.value if isinstance(error_code, ErrorCode) else error_code
        )
        self.message = message
        self.severity = severity
        self.context = context or {}
        self.cause = cause

        # Capture stack trace at creation time
        self.stack_trace = traceback.format_stack()[:-1]

        self.fingerprint = self._generate_fingerprint()

        super().__init__(message)
        if cause:
            self.__cause__ = cause

    def _generate_fingerprint(self) -> str:
        """Generate a fingerprint for error grouping.

        Returns:
            str: A hash based on the error type and the raising location.
        """
        max_frames = 5
        relevant_frames = self.stack_trace[-max_frames:]

        fingerprint_data = f"{self.__class__.__name__}:{self.error_code}"
        for frame in relevant_frames:
            if "site-packages" not in frame and "casekit" in frame:
                lines = frame.strip().split("\n")
                if lines:
                    fingerprint_data += f":{lines[0]}"

        return hashlib.sha256(fingerprint_data.encode()).hexdigest()[:16]

    @property
    def is_expected(self) -> bool:
        """Whether this error occurs during normal operation (LOW or MEDIUM)."""
        return self.severity in (Severity.LOW, Severity.MEDIUM)

    @property
    def should_alert(self) -> bool:
        """Whether this error should trigger alerts (HIGH or CRITICAL)."""
        return self.severity in (Severity.HIGH, Severity.CRITICAL)

    def __str__(self) -> str:
        """Return a string representation of the exception.

        Returns:
            str: A formatted string containing the error code and message
        """
        return f"[{self.error_code}] {self.message}"

    def __repr__(self) -> str:
        """Return a detailed representation of the exception.

        Returns:
            str: Class name, error code, message, severity and context
        """
        class_name = self.__class__.__name__
        context_str = f", context={self.context}" if self.context else ""
        return (
            f"{class_name}(error_code='{self.error_code}', "
            f"message='{self.message}', severity={self.severity.value}{context_str})"
        )


class ConfigurationError(CasekitError):
    """Exception raised when settings are missing or inconsistent."""

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.CONFIGURATION_ERROR, message, Severity.HIGH, context, cause
        )


class MissingConnectionError(CasekitError):
    """Exception raised when no connection descriptor is supplied.

    This is raised synchronously while building the database configuration
    and is always fatal.

    Args:
        message: Description of what is missing
        context: Additional context information about the error
    """

    def __init__(
        self,
        message: str = "connection is required",
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(ErrorCode.MISSING_CONNECTION, message, Severity.HIGH, context)


class TransientConnectionError(CasekitError):
    """Exception raised when the database cannot be reached yet.

    The migration runner recovers from this error by waiting and retrying.

    Args:
        code: Short connectivity code (ECONNREFUSED or ENOTFOUND)
        message: Human-readable error message
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        code: str,
        message: str = "Could not connect to db",
        cause: Exception | None = None,
    ) -> None:
        self.code = code
        super().__init__(
            ErrorCode.CONNECTION_UNAVAILABLE,
            message,
            Severity.MEDIUM,
            {"code": code},
            cause,
        )


class MigrationError(CasekitError):
    """Exception raised when a migration fails for a non-transient reason.

    Args:
        message: Description of the failure
        context: Additional context information about the error
        cause: The original exception that caused this error
    """

    def __init__(
        self,
        message: str,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            ErrorCode.MIGRATION_FAILED, message, Severity.CRITICAL, context, cause
        )
