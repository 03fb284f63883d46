"""User profile service.

Role changes and permission overrides go through the permission registry;
the owner profile can never be altered through this service.
"""

import logging
from datetime import datetime
from typing import Callable, Iterable, List, Optional

from ....config.constants import AUDIENCE_ROLES, UserRole
from ....core.exceptions import (
    EntityNotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from ....core.value_objects import UserId
from ....utils.error_handling import service_operation
from ....utils.timezone import to_timestamp_ms, utc_now
from ....utils.validation import normalize_email, normalize_phone, parse_enum
from ...permissions import (
    Permission,
    can_assign_permissions,
    require_permission,
)
from ..entities.user_profile import UserProfile
from ..repositories.profile_repository import ProfileRepository

logger = logging.getLogger(__name__)


class UserService:
    """Service for profile lifecycle, roles and permission overrides."""

    def __init__(self, profiles: ProfileRepository, clock: Callable[[], datetime] = utc_now):
        self.profiles = profiles
        self.clock = clock

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        """Get a profile by user id."""
        return await self.profiles.get_by_user_id(UserId.parse(user_id))

    async def require_profile(self, user_id: str) -> UserProfile:
        """Get a profile by user id or raise EntityNotFoundError."""
        profile = await self.get_profile(user_id)
        if profile is None:
            raise EntityNotFoundError("UserProfile", user_id)
        return profile

    @service_operation("create profile")
    async def create_profile(
        self,
        user_id: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        email: Optional[str] = None,
        phone_number: Optional[str] = None,
        role: UserRole = UserRole.CLIENT,
    ) -> UserProfile:
        """Create the caller's own profile, returning the existing one if present.

        Self-service sign-up can only pick an audience role; staff roles come
        from invite codes.
        """
        user_id = UserId.parse(user_id)
        existing = await self.profiles.get_by_user_id(user_id)
        if existing is not None:
            return existing

        role = parse_enum(UserRole, role, "role")
        if role not in AUDIENCE_ROLES:
            raise PermissionDeniedError(f"Cannot self-assign role {role.value}")

        profile = UserProfile(
            user_id=user_id,
            role=role,
            first_name=first_name,
            last_name=last_name,
            email=normalize_email(email),
            phone_number=normalize_phone(phone_number),
            created_at=self.clock(),
        )
        return await self.profiles.create(profile)

    @service_operation("update user role", log_level=logging.INFO)
    async def update_user_role(
        self,
        actor_id: Optional[str],
        target_user_id: str,
        new_role: UserRole,
    ) -> UserProfile:
        """Change another user's role."""
        actor = await self.profiles.get_actor(actor_id)
        require_permission(actor, Permission.UPDATE_USER_ROLES)

        new_role = parse_enum(UserRole, new_role, "role")
        if new_role is UserRole.OWNER:
            raise PermissionDeniedError("The owner role cannot be assigned")
        if new_role is UserRole.ADMIN:
            require_permission(actor, Permission.PROMOTE_TO_ADMIN)

        target = await self.require_profile(target_user_id)
        if target.is_owner:
            raise PermissionDeniedError("The owner's role cannot be changed")

        updated = await self.profiles.update(target, {"role": new_role.value})
        logger.info(f"User {actor_id} changed role of {target_user_id} to {new_role.value}")
        return updated

    @service_operation("set user permissions", log_level=logging.INFO)
    async def set_user_permissions(
        self,
        actor_id: Optional[str],
        target_user_id: str,
        permissions: Optional[Iterable[str]],
    ) -> UserProfile:
        """Replace a user's custom permission list.

        An empty or None list removes the override so role defaults apply.
        """
        actor = await self.profiles.get_actor(actor_id)
        require_permission(actor, Permission.MANAGE_USERS)

        requested: List[str] = []
        for value in permissions or []:
            try:
                requested.append(Permission(value).value)
            except ValueError:
                raise ValidationError(f"Unknown permission: {value}", field="permissions")

        if not can_assign_permissions(actor, requested):
            raise PermissionDeniedError(
                f"Granting {Permission.PROMOTE_TO_ADMIN.value} requires holding it",
                required=[Permission.PROMOTE_TO_ADMIN],
            )

        target = await self.require_profile(target_user_id)
        if target.is_owner:
            raise PermissionDeniedError("The owner's permissions cannot be overridden")

        return await self.profiles.update(
            target, {"permissions": sorted(set(requested)) or None}
        )

    @service_operation("set user active")
    async def set_active(self, actor_id: Optional[str], target_user_id: str, is_active: bool) -> UserProfile:
        """Activate or deactivate a user; deactivated users hold no permissions."""
        actor = await self.profiles.get_actor(actor_id)
        require_permission(actor, Permission.MANAGE_USERS)

        target = await self.require_profile(target_user_id)
        if target.is_owner:
            raise PermissionDeniedError("The owner cannot be deactivated")
        return await self.profiles.update(target, {"is_active": bool(is_active)})

    async def list_users(self, actor_id: Optional[str], role: Optional[UserRole] = None) -> List[UserProfile]:
        actor = await self.profiles.get_actor(actor_id)
        require_permission(actor, Permission.VIEW_USERS)
        return await self.profiles.list(parse_enum(UserRole, role, "role") if role else None)

    async def assign_role_from_invite(
        self,
        user_id: str,
        role: UserRole,
        invited_by: Optional[str],
        email: Optional[str] = None,
        phone_number: Optional[str] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> UserProfile:
        """Give a user the role carried by an invite they redeemed.

        Creates the profile when the user has none yet. Never touches the
        owner profile.
        """
        role = parse_enum(UserRole, role, "role")
        now = self.clock()
        existing = await self.profiles.get_by_user_id(user_id)

        if existing is None:
            profile = UserProfile(
                user_id=user_id,
                role=role,
                first_name=first_name,
                last_name=last_name,
                email=email.lower() if email else None,
                phone_number=phone_number,
                invited_by=invited_by,
                invite_accepted_at=now,
                created_at=now,
            )
            return await self.profiles.create(profile)

        if existing.is_owner:
            raise PermissionDeniedError("The owner's role cannot be changed")

        fields = {
            "role": role.value,
            "invited_by": invited_by,
            "invite_accepted_at": to_timestamp_ms(now),
        }
        if email and not existing.email:
            fields["email"] = email.lower()
        if phone_number and not existing.phone_number:
            fields["phone_number"] = phone_number
        return await self.profiles.update(existing, fields)
