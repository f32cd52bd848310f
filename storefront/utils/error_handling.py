"""
Error types shared across the storefront.

Services raise these; stores catch them at their boundary and turn them
into an OperationResult for the caller.
"""
from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """How serious an error is for the running session."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class StorefrontError(Exception):
    """Base class for all storefront errors."""

    retryable = False

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.message = message
        self.severity = severity
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """Convert the error to a dictionary."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "severity": self.severity.value,
            "retryable": self.retryable,
            "cause": str(self.cause) if self.cause else None,
        }

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message} (caused by {type(self.cause).__name__}: {self.cause})"
        return self.message


class RemoteUnavailable(StorefrontError):
    """The remote cart/wishlist API could not be reached or refused the call."""

    retryable = True

    def __init__(self, message: str, status: Optional[int] = None, cause: Optional[Exception] = None):
        super().__init__(message, severity=ErrorSeverity.ERROR, cause=cause)
        self.status = status


class LocalStorageUnavailable(StorefrontError):
    """Guest storage is disabled, full or unreadable."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message, severity=ErrorSeverity.WARNING, cause=cause)


class MalformedRemoteCollection(StorefrontError):
    """A collection payload did not have the expected shape."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message, severity=ErrorSeverity.WARNING, cause=cause)


class CheckoutValidationError(StorefrontError):
    """The checkout form or cart is not ready to become an order."""

    def __init__(self, message: str, fields: Optional[list] = None):
        super().__init__(message, severity=ErrorSeverity.INFO)
        self.fields = fields or []


class OperationInProgress(StorefrontError):
    """A write for the same item is still waiting on the remote API."""

    retryable = True

    def __init__(self, message: str):
        super().__init__(message, severity=ErrorSeverity.INFO)


class ItemUnavailable(StorefrontError):
    """The item cannot be added: it is missing or out of stock."""

    def __init__(self, message: str):
        super().__init__(message, severity=ErrorSeverity.INFO)
