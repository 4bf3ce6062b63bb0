"""
Custom business exceptions for API endpoints.

WHAT: Domain-specific exceptions that map to HTTP status codes
WHY: Consistent error handling across all API endpoints
HOW: Custom exception classes with error codes and messages
"""

from typing import Optional, Any


class APIException(Exception):
    """Base class for API-facing exceptions."""

    def __init__(self, message: str, code: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details


class SiteParseError(APIException):
    """Raised when model output does not contain a usable html/css/js object."""

    def __init__(self, message: str):
        super().__init__(
            message=f"Parse error: {message}",
            code="SITE_PARSE_ERROR",
            details={"reason": message}
        )
