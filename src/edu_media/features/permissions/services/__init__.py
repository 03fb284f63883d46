"""Permission services."""

from .permission_registry import (
    effective_permissions,
    has_permission,
    has_all_permissions,
    has_any_permission,
    require_permission,
    require_any_permission,
    can_assign_permissions,
)

__all__ = [
    "effective_permissions",
    "has_permission",
    "has_all_permissions",
    "has_any_permission",
    "require_permission",
    "require_any_permission",
    "can_assign_permissions",
]
