"""Management of content-level and bundle-level access grants."""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from ....config.constants import AUDIENCE_ROLES, Collections, PricingTarget, UserRole
from ....core.exceptions import EntityNotFoundError, ValidationError
from ....core.value_objects import BundleId, ContentId, GroupId, UserId
from ....protocols import DocumentStore
from ....utils.error_handling import service_operation
from ....utils.timezone import ensure_utc, utc_now
from ....utils.validation import parse_enum
from ...notifications.services.dispatcher import NotificationDispatcher
from ...permissions import Permission, require_permission
from ...users.repositories.profile_repository import ProfileRepository
from ..entities.access_grant import AccessGrant
from ..repositories.grant_repository import GrantRepository

logger = logging.getLogger(__name__)


class GrantService:
    """Grants and revokes access to content items and bundles.

    All operations require ``manage_content_access``.
    """

    def __init__(
        self,
        store: DocumentStore,
        grants: GrantRepository,
        profiles: ProfileRepository,
        notifications: Optional[NotificationDispatcher] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.grants = grants
        self.profiles = profiles
        self.notifications = notifications
        self.clock = clock

    async def _authorize(self, actor_id: Optional[str]):
        actor = await self.profiles.get_actor(actor_id)
        require_permission(actor, Permission.MANAGE_CONTENT_ACCESS)
        return actor

    async def _target_title(self, target_type: PricingTarget, target_id: str) -> str:
        if target_type is PricingTarget.CONTENT:
            document = await self.store.get(Collections.CONTENT, target_id)
            if document is None:
                raise EntityNotFoundError("Content", target_id)
            return document["title"]
        document = await self.store.get(Collections.CONTENT_BUNDLES, target_id)
        if document is None:
            raise EntityNotFoundError("ContentBundle", target_id)
        return document["name"]

    async def _grant(
        self,
        actor_id: Optional[str],
        target_type: PricingTarget,
        target_id: str,
        user_id: Optional[str],
        role: Optional[UserRole],
        user_group_id: Optional[str],
        expires_at: Optional[datetime],
        can_share: bool,
    ) -> AccessGrant:
        actor = await self._authorize(actor_id)
        title = await self._target_title(target_type, target_id)

        if role is not None:
            role = parse_enum(UserRole, role, "role")
            if role not in AUDIENCE_ROLES:
                raise ValidationError(f"Cannot grant access to role '{role.value}'", field="role")
        if user_group_id is not None:
            user_group_id = GroupId.parse(user_group_id)
            if await self.store.get(Collections.USER_GROUPS, user_group_id) is None:
                raise EntityNotFoundError("UserGroup", user_group_id)
        if user_id is not None:
            user_id = UserId.parse(user_id)

        grant = AccessGrant(
            target_type=target_type,
            target_id=target_id,
            granted_by=actor_id,
            user_id=user_id,
            role=role,
            user_group_id=user_group_id,
            expires_at=ensure_utc(expires_at) if expires_at else None,
            can_share=bool(can_share),
            created_at=self.clock(),
        )
        grant = await self.grants.insert(grant)
        grantee_label = user_id or (role.value if role else user_group_id)
        logger.info(f"Granted {target_type.value} {target_id} to {grantee_label} (grant {grant.id}, by {actor_id})")

        if user_id and self.notifications is not None:
            grantee = await self.profiles.get_by_user_id(user_id)
            if grantee is not None and grantee.email:
                await self.notifications.notify_access_granted(
                    recipient_email=grantee.email,
                    recipient_name=grantee.first_name or "there",
                    granter_name=actor.display_name if actor else "Someone",
                    content_title=title,
                )
        return grant

    @service_operation("grant content access", log_level=logging.INFO)
    async def grant_content_access(
        self,
        actor_id: Optional[str],
        content_id: str,
        user_id: Optional[str] = None,
        role: Optional[UserRole] = None,
        user_group_id: Optional[str] = None,
        expires_at: Optional[datetime] = None,
        can_share: bool = False,
    ) -> AccessGrant:
        """Grant one user, role or group access to a content item."""
        return await self._grant(
            actor_id, PricingTarget.CONTENT, ContentId.parse(content_id),
            user_id, role, user_group_id, expires_at, can_share,
        )

    @service_operation("grant bundle access", log_level=logging.INFO)
    async def grant_bundle_access(
        self,
        actor_id: Optional[str],
        bundle_id: str,
        user_id: Optional[str] = None,
        role: Optional[UserRole] = None,
        user_group_id: Optional[str] = None,
        expires_at: Optional[datetime] = None,
        can_share: bool = False,
    ) -> AccessGrant:
        """Grant one user, role or group access to every item of a bundle."""
        return await self._grant(
            actor_id, PricingTarget.BUNDLE, BundleId.parse(bundle_id),
            user_id, role, user_group_id, expires_at, can_share,
        )

    @service_operation("revoke access", log_level=logging.INFO)
    async def revoke_grant(self, actor_id: Optional[str], target_type: PricingTarget, grant_id: str) -> None:
        await self._authorize(actor_id)
        target_type = parse_enum(PricingTarget, target_type, "target_type")
        grant = await self.grants.get(target_type, grant_id)
        await self.grants.delete(target_type, grant.id)
        logger.info(f"Revoked {target_type.value} grant {grant.id} by {actor_id}")

    async def list_content_grants(self, actor_id: Optional[str], content_id: str) -> List[AccessGrant]:
        await self._authorize(actor_id)
        return await self.grants.for_target(PricingTarget.CONTENT, ContentId.parse(content_id))

    async def list_bundle_grants(self, actor_id: Optional[str], bundle_id: str) -> List[AccessGrant]:
        await self._authorize(actor_id)
        return await self.grants.for_target(PricingTarget.BUNDLE, BundleId.parse(bundle_id))
