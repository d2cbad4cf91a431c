"""
Utilities for standardized error responses.
"""
from typing import Any, Dict, Optional
import logging
from fastapi import HTTPException, status

from listpilot.core.exceptions import ListpilotException

logger = logging.getLogger("listpilot.errors")


class ErrorResponse:
    """Standard error response format."""

    @staticmethod
    def model(
        code: str,
        message: Any,
        details: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Create a standardized error response body.

        Args:
            code: Error code
            message: Error message
            details: Additional error details

        Returns:
            Dict: Standardized error response
        """
        return {
            "status": "error",
            "code": code,
            "message": message,
            "details": details or {}
        }

    @staticmethod
    def from_exception(exception: Exception) -> Dict[str, Any]:
        """
        Create error response from exception.

        Args:
            exception: Exception to process

        Returns:
            Dict: Standardized error response
        """
        if isinstance(exception, ListpilotException):
            return ErrorResponse.model(
                code=exception.code,
                message=exception.message,
                details=exception.details
            )
        elif isinstance(exception, HTTPException):
            return ErrorResponse.model(
                code=f"HTTP_{exception.status_code}",
                message=exception.detail,
            )
        else:
            return ErrorResponse.model(
                code="INTERNAL_ERROR",
                message=str(exception),
                details={"type": type(exception).__name__}
            )


def status_code_for(exception: Exception) -> int:
    """HTTP status code to answer with for an exception."""
    if isinstance(exception, (ListpilotException, HTTPException)):
        return exception.status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def log_exception(exception: Exception) -> None:
    """Log expected client errors quietly and everything else loudly."""
    code = status_code_for(exception)
    if code < 500:
        logger.info(f"Expected exception: {exception}")
    else:
        logger.error(f"Exception: {exception}", exc_info=exception)
