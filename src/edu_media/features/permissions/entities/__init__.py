"""Permission entities."""

from .permission import (
    Permission,
    ALL_PERMISSIONS,
    PRIVILEGED_VIEW_PERMISSIONS,
    DEFAULT_PERMISSIONS,
)

__all__ = ["Permission", "ALL_PERMISSIONS", "PRIVILEGED_VIEW_PERMISSIONS", "DEFAULT_PERMISSIONS"]
