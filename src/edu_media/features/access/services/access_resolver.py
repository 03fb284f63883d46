"""Access resolver.

Decides, for one content item and one requester, whether the item may be
viewed and why. Paths are tried from most to least privileged and the first
match wins:

1. privileged staff (review or publish rights) see everything
2. everyone else only sees published, active, unarchived content inside its
   availability window
3. the creator
4. public content, including for anonymous requesters
5. a valid direct, role or group grant on the item, then on any active
   bundle containing it
6. the item's password
7. anonymous requesters are asked to sign in; everyone else is denied

``now`` is read once per resolution so every expiry check agrees.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, FrozenSet, List, Optional, Sequence, Tuple

from ....config.constants import AccessPath, ContentStatus, ContentType, PricingTarget
from ....core.value_objects import ContentId, UserId
from ....utils.timezone import utc_now
from ....utils.tokens import constant_time_equals
from ...content.entities.content_item import ContentItem
from ...content.repositories.content_repository import ContentRepository
from ...permissions import PRIVILEGED_VIEW_PERMISSIONS, Permission, effective_permissions
from ...users.entities.user_profile import UserProfile
from ...users.repositories.profile_repository import ProfileRepository
from ..entities.access_grant import AccessGrant
from ..entities.resolution import NO_PERMISSION, AccessResolution, ShareEligibility
from ..repositories.grant_repository import GrantRepository

logger = logging.getLogger(__name__)

_CONTENT_GRANT_PATHS = (AccessPath.USER_GRANT, AccessPath.ROLE_GRANT, AccessPath.GROUP_GRANT)
_BUNDLE_GRANT_PATHS = (AccessPath.BUNDLE_USER_GRANT, AccessPath.BUNDLE_ROLE_GRANT, AccessPath.BUNDLE_GROUP_GRANT)


@dataclass
class RequesterContext:
    """Everything about a requester the resolver needs, loaded once."""

    user_id: Optional[str]
    profile: Optional[UserProfile]
    permissions: FrozenSet[Permission]
    group_ids: List[str] = field(default_factory=list)

    @property
    def is_anonymous(self) -> bool:
        return self.user_id is None

    @property
    def role_value(self) -> Optional[str]:
        if self.profile is None or not self.profile.is_active:
            return None
        return self.profile.role.value


def gate_failure(content: ContentItem, now: datetime) -> Optional[str]:
    """Reason a non-privileged viewer cannot see ``content`` right now, or None."""
    if content.status is not ContentStatus.PUBLISHED:
        return "Content is not published"
    if content.is_archived:
        return "Content has been archived"
    return content.availability_failure(now)


class AccessResolver:
    """Single entry point for content visibility decisions."""

    def __init__(
        self,
        contents: ContentRepository,
        profiles: ProfileRepository,
        grants: GrantRepository,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.contents = contents
        self.profiles = profiles
        self.grants = grants
        self.clock = clock

    async def requester_context(self, requester_id: Optional[str]) -> RequesterContext:
        if requester_id is None:
            return RequesterContext(user_id=None, profile=None, permissions=frozenset())
        requester_id = UserId.parse(requester_id)
        profile = await self.profiles.get_by_user_id(requester_id)
        return RequesterContext(
            user_id=requester_id,
            profile=profile,
            permissions=effective_permissions(profile),
            group_ids=await self.grants.group_ids_for_user(requester_id),
        )

    async def resolve(
        self,
        content_id: str,
        requester_id: Optional[str],
        supplied_password: Optional[str] = None,
    ) -> AccessResolution:
        """Resolve access to a content item.

        Raises:
            ValidationError: a malformed id was supplied
            EntityNotFoundError: the content item does not exist
        """
        content = await self.contents.get(ContentId.parse(content_id))
        requester = await self.requester_context(requester_id)
        resolution = await self.evaluate(content, requester, supplied_password, self.clock())
        logger.debug(
            f"Access to {content.id} for {requester_id or 'anonymous'}: "
            f"allowed={resolution.allowed} path={resolution.path} reason={resolution.reason}"
        )
        return resolution

    async def can_view(self, content_id: str, requester_id: Optional[str]) -> bool:
        return (await self.resolve(content_id, requester_id)).allowed

    async def evaluate(
        self,
        content: ContentItem,
        requester: RequesterContext,
        supplied_password: Optional[str],
        now: datetime,
    ) -> AccessResolution:
        """Run the resolution order against an already loaded item and requester."""
        if not requester.permissions.isdisjoint(PRIVILEGED_VIEW_PERMISSIONS):
            return AccessResolution.allow(AccessPath.PRIVILEGED)

        gate_reason = gate_failure(content, now)
        if gate_reason:
            return AccessResolution.deny(gate_reason)

        if content.is_creator(requester.user_id):
            return AccessResolution.allow(AccessPath.CREATOR)

        if content.is_public:
            return AccessResolution.allow(AccessPath.PUBLIC)

        matched = await self.find_valid_grant(content, requester, now)
        if matched is not None:
            path, grant = matched
            return AccessResolution.allow(path, grant_id=grant.id)

        if content.has_password:
            if supplied_password is None:
                return AccessResolution.deny(
                    "Password required",
                    requires_password=True,
                    requires_auth=requester.is_anonymous,
                )
            if not constant_time_equals(supplied_password, content.password):
                return AccessResolution.deny("Incorrect password", requires_password=True)
            return AccessResolution.allow(AccessPath.PASSWORD)

        if requester.is_anonymous:
            return AccessResolution.deny("Sign in required", requires_auth=True)

        return AccessResolution.deny(NO_PERMISSION)

    def _match(
        self,
        grants: Sequence[AccessGrant],
        requester: RequesterContext,
        paths: Tuple[AccessPath, AccessPath, AccessPath],
    ) -> Optional[Tuple[AccessPath, AccessGrant]]:
        user_path, role_path, group_path = paths
        for grant in grants:
            if grant.user_id is not None and grant.user_id == requester.user_id:
                return user_path, grant
        role = requester.role_value
        for grant in grants:
            if role is not None and grant.role is not None and grant.role.value == role:
                return role_path, grant
        for grant in grants:
            if grant.user_group_id is not None and grant.user_group_id in requester.group_ids:
                return group_path, grant
        return None

    async def find_valid_grant(
        self,
        content: ContentItem,
        requester: RequesterContext,
        now: datetime,
    ) -> Optional[Tuple[AccessPath, AccessGrant]]:
        """First non-expired grant that covers the requester, content grants before bundle grants."""
        if requester.is_anonymous:
            return None

        content_grants = await self.grants.valid_for_target(PricingTarget.CONTENT, content.id, now)
        matched = self._match(content_grants, requester, _CONTENT_GRANT_PATHS)
        if matched:
            return matched

        for bundle_id in await self.grants.active_bundle_ids_for_content(content.id):
            bundle_grants = await self.grants.valid_for_target(PricingTarget.BUNDLE, bundle_id, now)
            matched = self._match(bundle_grants, requester, _BUNDLE_GRANT_PATHS)
            if matched:
                return matched
        return None

    async def list_visible_content(
        self,
        requester_id: Optional[str],
        content_type: Optional[ContentType] = None,
    ) -> List[ContentItem]:
        """Every content item the requester can view without a password."""
        requester = await self.requester_context(requester_id)
        now = self.clock()
        visible = []
        for content in await self.contents.list(content_type=content_type):
            resolution = await self.evaluate(content, requester, None, now)
            if resolution.allowed:
                visible.append(content)
        return visible

    async def can_share_content(self, content_id: str, sharer_id: Optional[str]) -> ShareEligibility:
        """Decide whether ``sharer_id`` may mint a third-party share link.

        Privileged sharers (third-party sharing rights, the creator, or a
        valid grant holder) may share anything they can see. Everyone else
        may only share content that is public, published and not for sale.
        """
        content = await self.contents.get(ContentId.parse(content_id))
        if sharer_id is None:
            return ShareEligibility(False, "Not authenticated")

        requester = await self.requester_context(sharer_id)
        if Permission.SHARE_CONTENT not in requester.permissions:
            return ShareEligibility(False, "No permission to share")

        now = self.clock()
        is_creator = content.is_creator(sharer_id)
        privileged = (
            is_creator
            or Permission.SHARE_WITH_THIRD_PARTY in requester.permissions
            or await self.find_valid_grant(content, requester, now) is not None
        )
        if privileged:
            resolution = await self.evaluate(content, requester, None, now)
            if resolution.allowed or is_creator:
                return ShareEligibility(True)

        if not content.is_public or gate_failure(content, now) is not None:
            return ShareEligibility(False, "Cannot share private content")
        if await self.grants.has_active_pricing(PricingTarget.CONTENT, content.id):
            return ShareEligibility(False, "Cannot share purchaseable content")
        return ShareEligibility(True)
