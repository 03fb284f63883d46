"""Base exceptions for edu-media-commons.

All exceptions inherit from EduMediaError and carry an error code and a
details mapping so callers can build structured responses.
"""

from typing import Any, Dict, Optional


class EduMediaError(Exception):
    """Base exception for all edu-media-commons errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}


def create_error_response(exception: EduMediaError) -> Dict[str, Any]:
    """Create standardized error response from exception.

    Args:
        exception: The edu-media exception

    Returns:
        Error response dictionary
    """
    return {
        "error": {
            "code": exception.error_code,
            "message": exception.message,
            "details": exception.details,
            "type": exception.__class__.__name__,
        }
    }
