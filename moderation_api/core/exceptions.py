"""
Custom exceptions for the Content Moderation API.

Backend failures are raised by the LLM clients as ``LLMServiceException`` and
absorbed by the classifier adapter; the remaining types are raised by the
HTTP layer and rendered as structured JSON errors.
"""

from typing import Optional, Dict, Any


class ContentModeratorException(Exception):
    """Base exception for all content moderator related errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "CONTENT_MODERATOR_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class LLMServiceException(ContentModeratorException):
    """Exception raised when an LLM backend call fails.

    ``status_code`` is the HTTP-equivalent status reported by the backend,
    or ``None`` when the failure never produced one (missing credentials,
    network errors, malformed SDK responses).
    """

    def __init__(
        self,
        message: str,
        provider: str = "unknown",
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.provider = provider
        self.status_code = status_code
        super().__init__(
            message=message,
            error_code="LLM_SERVICE_ERROR",
            details={
                **(details or {}),
                "provider": provider,
                "status_code": status_code
            }
        )


class ValidationException(ContentModeratorException):
    """Exception raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            details={**(details or {}), "field": field}
        )


class BatchTooLargeException(ContentModeratorException):
    """Exception raised when a batch holds more items than allowed."""

    def __init__(
        self,
        message: Optional[str] = None,
        max_size: int = 0,
        actual_size: int = 0,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message or f"Maximum {max_size} items allowed per batch request",
            error_code="BATCH_TOO_LARGE",
            details={
                **(details or {}),
                "max_size": max_size,
                "actual_size": actual_size
            }
        )


# Exception to HTTP status code mapping
EXCEPTION_STATUS_MAPPING = {
    LLMServiceException: 503,  # Service Unavailable
    ValidationException: 400,  # Bad Request
    BatchTooLargeException: 400,  # Bad Request
}
