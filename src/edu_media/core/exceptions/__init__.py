"""Exception hierarchy for edu-media-commons."""

from .base import EduMediaError, create_error_response
from .domain import (
    AuthenticationError,
    NotAuthenticatedError,
    InvalidTokenError,
    AuthorizationError,
    PermissionDeniedError,
    EntityNotFoundError,
    BusinessLogicError,
    ValidationError,
    InvalidStateError,
    InvalidTransitionError,
    DuplicateResourceError,
    ConflictError,
    ConcurrentModificationError,
    InfrastructureError,
    DocumentStoreError,
    DuplicateKeyError,
    CodeSpaceExhaustedError,
    NotificationDeliveryError,
)
from .http_mapping import HTTP_STATUS_MAP, get_http_status_code

__all__ = [
    "EduMediaError",
    "create_error_response",
    "AuthenticationError",
    "NotAuthenticatedError",
    "InvalidTokenError",
    "AuthorizationError",
    "PermissionDeniedError",
    "EntityNotFoundError",
    "BusinessLogicError",
    "ValidationError",
    "InvalidStateError",
    "InvalidTransitionError",
    "DuplicateResourceError",
    "ConflictError",
    "ConcurrentModificationError",
    "InfrastructureError",
    "DocumentStoreError",
    "DuplicateKeyError",
    "CodeSpaceExhaustedError",
    "NotificationDeliveryError",
    "HTTP_STATUS_MAP",
    "get_http_status_code",
]
