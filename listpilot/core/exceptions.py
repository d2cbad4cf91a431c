"""
Custom exception classes for Listpilot.
"""
from typing import Any, Dict, Optional


class ListpilotException(Exception):
    """Base exception class for Listpilot application."""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ValidationError(ListpilotException):
    """Raised for validation errors."""

    def __init__(
        self,
        message: str = "Validation error",
        code: str = "VALIDATION_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code=code, status_code=422, details=details)


class NotFoundError(ListpilotException):
    """Raised when a resource is not found."""

    def __init__(
        self,
        message: str = "Resource not found",
        code: str = "NOT_FOUND",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code=code, status_code=404, details=details)


class ProviderError(ListpilotException):
    """Raised when the Brevo API answers with an error or cannot be reached."""

    def __init__(
        self,
        message: str = "Email provider error",
        code: str = "PROVIDER_ERROR",
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 502,
    ):
        super().__init__(message=message, code=code, status_code=status_code, details=details)


class ProviderAuthError(ProviderError):
    """Raised when an account's Brevo API key is rejected."""
    def __init__(
        self,
        message: str = "Invalid Brevo API key",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="PROVIDER_AUTH_ERROR",
            status_code=401,
            details=details
        )
