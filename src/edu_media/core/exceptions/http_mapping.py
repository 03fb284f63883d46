"""HTTP status code mapping for exceptions.

The core has no HTTP surface; host applications use this mapping when they
expose services over an API.
"""

from typing import Dict, Type

from .base import EduMediaError
from .domain import (
    AuthenticationError,
    AuthorizationError,
    BusinessLogicError,
    ConflictError,
    DuplicateResourceError,
    EntityNotFoundError,
    InfrastructureError,
    InvalidStateError,
    ValidationError,
    CodeSpaceExhaustedError,
)


HTTP_STATUS_MAP: Dict[Type[Exception], int] = {
    # 400 Bad Request
    BusinessLogicError: 400,
    InvalidStateError: 400,
    # 401 Unauthorized
    AuthenticationError: 401,
    # 403 Forbidden
    AuthorizationError: 403,
    # 404 Not Found
    EntityNotFoundError: 404,
    # 409 Conflict
    DuplicateResourceError: 409,
    ConflictError: 409,
    # 422 Unprocessable Entity
    ValidationError: 422,
    # 500 / 503
    InfrastructureError: 500,
    CodeSpaceExhaustedError: 503,
    EduMediaError: 500,
}


def get_http_status_code(exception: Exception) -> int:
    """Get HTTP status code for exception.

    Walks the exception's MRO so the most specific mapped class wins.

    Args:
        exception: The exception instance

    Returns:
        HTTP status code, 500 for unmapped exceptions
    """
    for cls in type(exception).__mro__:
        if cls in HTTP_STATUS_MAP:
            return HTTP_STATUS_MAP[cls]
    return 500
