"""edu-media-commons: content management and access control for educational media.

Provides the permission registry, content workflow, version history, access
resolution, commerce ledger and sharing tokens behind an educational media
platform. Storage, identity, blobs and notifications are supplied by the host
through the protocols in ``edu_media.protocols``.
"""

# Initialize logging configuration on import
from .config.logging_config import setup_logging
setup_logging()

from .__version__ import __version__

from .config import (
    EduMediaSettings,
    get_settings,
    UserRole,
    ContentType,
    ContentStatus,
    WorkflowAction,
    OrderStatus,
    PricingTarget,
    AccessPath,
)

from .core.exceptions import (
    EduMediaError,
    AuthenticationError,
    NotAuthenticatedError,
    AuthorizationError,
    PermissionDeniedError,
    EntityNotFoundError,
    BusinessLogicError,
    ValidationError,
    InvalidStateError,
    InvalidTransitionError,
    DuplicateResourceError,
    ConflictError,
    InfrastructureError,
    CodeSpaceExhaustedError,
    get_http_status_code,
    create_error_response,
)

from .features.permissions import Permission, effective_permissions, has_permission
from .features.access import AccessResolution, ShareEligibility, ContentView
from .platform import EduMediaPlatform

__all__ = [
    "__version__",
    # Configuration
    "EduMediaSettings",
    "get_settings",
    "UserRole",
    "ContentType",
    "ContentStatus",
    "WorkflowAction",
    "OrderStatus",
    "PricingTarget",
    "AccessPath",
    # Exceptions
    "EduMediaError",
    "AuthenticationError",
    "NotAuthenticatedError",
    "AuthorizationError",
    "PermissionDeniedError",
    "EntityNotFoundError",
    "BusinessLogicError",
    "ValidationError",
    "InvalidStateError",
    "InvalidTransitionError",
    "DuplicateResourceError",
    "ConflictError",
    "InfrastructureError",
    "CodeSpaceExhaustedError",
    "get_http_status_code",
    "create_error_response",
    # Authorization
    "Permission",
    "effective_permissions",
    "has_permission",
    "AccessResolution",
    "ShareEligibility",
    "ContentView",
    # Composition
    "EduMediaPlatform",
]
