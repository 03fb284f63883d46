"""Permission registry feature.

Defines the permission catalog, role defaults and the effective-permission
rules every other feature authorizes against.
"""

from .entities import Permission, ALL_PERMISSIONS, PRIVILEGED_VIEW_PERMISSIONS, DEFAULT_PERMISSIONS
from .services import (
    effective_permissions,
    has_permission,
    has_all_permissions,
    has_any_permission,
    require_permission,
    require_any_permission,
    can_assign_permissions,
)

__all__ = [
    "Permission",
    "ALL_PERMISSIONS",
    "PRIVILEGED_VIEW_PERMISSIONS",
    "DEFAULT_PERMISSIONS",
    "effective_permissions",
    "has_permission",
    "has_all_permissions",
    "has_any_permission",
    "require_permission",
    "require_any_permission",
    "can_assign_permissions",
]
