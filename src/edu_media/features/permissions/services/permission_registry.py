"""Effective-permission computation.

Every function here is pure. Profiles are read by attribute (``role`` and
``permissions``) so callers can pass a UserProfile or any similar object;
``None`` stands for an anonymous caller or a missing profile.
"""

import logging
from typing import Any, FrozenSet, Iterable, Optional

from ....config.constants import UserRole
from ....core.exceptions import PermissionDeniedError
from ..entities.permission import DEFAULT_PERMISSIONS, Permission


logger = logging.getLogger(__name__)


def _parse_role(role: Any) -> Optional[UserRole]:
    if isinstance(role, UserRole):
        return role
    try:
        return UserRole(role)
    except ValueError:
        return None


def _parse_permissions(values: Iterable[Any]) -> FrozenSet[Permission]:
    parsed = set()
    for value in values:
        try:
            parsed.add(value if isinstance(value, Permission) else Permission(value))
        except ValueError:
            logger.warning(f"Ignoring unknown permission in override list: {value!r}")
    return frozenset(parsed)


def effective_permissions(profile: Any) -> FrozenSet[Permission]:
    """Compute the permission set a profile actually holds.

    A non-empty custom list replaces the role defaults entirely. The owner
    always holds the full owner set and ignores overrides. Missing,
    malformed or deactivated profiles hold nothing.
    """
    if profile is None or getattr(profile, "is_active", True) is False:
        return frozenset()

    role = _parse_role(getattr(profile, "role", None))
    if role is None:
        return frozenset()
    if role is UserRole.OWNER:
        return DEFAULT_PERMISSIONS[UserRole.OWNER]

    overrides = getattr(profile, "permissions", None)
    if overrides:
        return _parse_permissions(overrides)
    return DEFAULT_PERMISSIONS.get(role, frozenset())


def has_permission(profile: Any, permission: Permission) -> bool:
    """Check if profile holds a single permission."""
    return permission in effective_permissions(profile)


def has_all_permissions(profile: Any, permissions: Iterable[Permission]) -> bool:
    """Check if profile holds every listed permission."""
    return frozenset(permissions) <= effective_permissions(profile)


def has_any_permission(profile: Any, permissions: Iterable[Permission]) -> bool:
    """Check if profile holds at least one listed permission."""
    return not effective_permissions(profile).isdisjoint(permissions)


def require_permission(profile: Any, *permissions: Permission) -> FrozenSet[Permission]:
    """Raise PermissionDeniedError unless profile holds every listed permission.

    Returns:
        The profile's effective permissions, for follow-up checks
    """
    held = effective_permissions(profile)
    missing = [p for p in permissions if p not in held]
    if missing:
        raise PermissionDeniedError(
            f"Missing permission: {', '.join(p.value for p in missing)}",
            required=missing,
        )
    return held


def require_any_permission(profile: Any, *permissions: Permission) -> FrozenSet[Permission]:
    """Raise PermissionDeniedError unless profile holds at least one listed permission."""
    held = effective_permissions(profile)
    if held.isdisjoint(permissions):
        raise PermissionDeniedError(
            f"Requires one of: {', '.join(p.value for p in permissions)}",
            required=permissions,
        )
    return held


def can_assign_permissions(editor_profile: Any, requested: Iterable[Any]) -> bool:
    """Check whether an editor may store ``requested`` as someone's custom list.

    Granting ``promote_to_admin`` needs the editor to hold it.
    """
    requested_set = _parse_permissions(requested)
    if Permission.PROMOTE_TO_ADMIN in requested_set:
        return has_permission(editor_profile, Permission.PROMOTE_TO_ADMIN)
    return True
