"""
Error classification for photojournal.

Every failure that reaches the HTTP layer is a PhotoJournalError subclass
carrying its category, severity, a machine-readable code, the message shown
to the client and the HTTP status it maps to.
"""

from datetime import datetime
from enum import Enum
from typing import Any

from .logging_config import log_error, log_security_event


class ErrorCategory(Enum):
    """Error categories for classification and handling."""

    AUTHENTICATION = "authentication"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    RATE_LIMIT = "rate_limit"
    STORAGE = "storage"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class PhotoJournalError(Exception):
    """Base exception class for photojournal."""

    status_code = 500

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(message)
        self.category = category
        self.severity = severity
        self.code = code or f"{category.value}_error"
        self.user_message = user_message or message
        self.details = details or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now()

        self._log_error()

    def _log_error(self) -> None:
        """Log the error with a level matching its severity."""
        error_context = {
            "category": self.category.value,
            "severity": self.severity.value,
            "code": self.code,
            **self.details,
        }

        if self.original_exception:
            error_context["original_exception"] = str(self.original_exception)

        if self.severity in (ErrorSeverity.HIGH, ErrorSeverity.CRITICAL):
            log_error(self, error_context)
        else:
            log_error(self, error_context, level="info")

        if self.category is ErrorCategory.AUTHENTICATION:
            log_security_event(self.category.value, context=error_context)

    def to_response(self) -> dict[str, Any]:
        """Body sent to the client. Internals never leave the server."""
        return {"error": self.user_message}


class ValidationError(PhotoJournalError):
    """Rejected input: bad file type, oversize, too many files, malformed body."""

    status_code = 400

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.LOW,
            code=code or "validation_failed",
            user_message=user_message,
            details=details,
            original_exception=original_exception,
        )


class AuthenticationError(PhotoJournalError):
    """Missing or invalid admin credentials."""

    status_code = 401

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.AUTHENTICATION,
            severity=ErrorSeverity.MEDIUM,
            code=code or "auth_failed",
            user_message=user_message,
            details=details,
        )


class NotFoundError(PhotoJournalError):
    """Unknown journal or file."""

    status_code = 404

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.NOT_FOUND,
            severity=ErrorSeverity.LOW,
            code=code or "not_found",
            user_message=user_message,
            details=details,
            original_exception=original_exception,
        )


class RateLimitError(PhotoJournalError):
    """Client exhausted its request window."""

    status_code = 429

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            category=ErrorCategory.RATE_LIMIT,
            severity=ErrorSeverity.LOW,
            code="rate_limited",
            details=details,
        )


class StorageError(PhotoJournalError):
    """A content directory or file could not be read or written."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.STORAGE,
            severity=ErrorSeverity.HIGH,
            code=code or "storage_error",
            user_message=user_message or "Internal server error",
            details=details,
            original_exception=original_exception,
        )
