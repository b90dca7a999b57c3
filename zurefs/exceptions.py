"""
zurefs Exception Hierarchy

Typed errors raised by the blob filesystem adapter. Backend HTTP failures are
classified by status code; caller mistakes are raised before any request is
issued.

Author: Ayodele Oladeji
Date: 2025
"""

from typing import Any, Dict, Optional


class AdapterError(Exception):
    """
    Base exception for all adapter errors.

    Raised directly for any non-success backend status that has no more
    specific classification, and for caller-side invariant violations such as
    an over-large append chunk.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code
        status_code: Backend HTTP status code, if the error came from a response
        reason: Backend reason phrase, if the error came from a response
        details: Additional context
    """

    error_code: str = "AdapterError"

    def __init__(
        self,
        message: str = "The storage adapter failed to complete the operation",
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.reason = reason
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format for diagnostics."""
        return {
            "error": {
                "code": self.error_code,
                "message": self.message,
                "status_code": self.status_code,
                "reason": self.reason,
                "details": self.details,
            }
        }


class ConfigurationError(AdapterError):
    """Raised when the endpoint configuration is missing or invalid."""

    error_code = "ConfigurationError"

    def __init__(self, message: str = "Configuration must be set before the service is used"):
        super().__init__(message)


class ArgumentError(AdapterError, ValueError):
    """Raised when a required argument is missing or out of range."""

    error_code = "ArgumentError"

    def __init__(self, argument: str, message: Optional[str] = None):
        message = message or f"Argument '{argument}' must not be None"
        super().__init__(message, details={"argument": argument})
        self.argument = argument


class NotFoundError(AdapterError):
    """Raised when the backend answers 404 Not Found."""

    error_code = "NotFound"

    def __init__(self, message: str = "Not Found", reason: Optional[str] = None):
        super().__init__(message, status_code=404, reason=reason or message)


class UnauthorizedError(AdapterError):
    """Raised when the backend answers 401 Unauthorized (key or signature mismatch)."""

    error_code = "Unauthorized"

    def __init__(self, message: str = "Unauthorized", reason: Optional[str] = None):
        super().__init__(message, status_code=401, reason=reason or message)
