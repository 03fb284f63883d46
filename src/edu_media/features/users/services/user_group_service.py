"""User group management."""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from ....config.constants import Collections
from ....core.exceptions import (
    DuplicateKeyError,
    DuplicateResourceError,
    EntityNotFoundError,
    InvalidStateError,
)
from ....core.value_objects import GroupId, UserId
from ....protocols import DocumentStore
from ....utils.error_handling import service_operation
from ....utils.timezone import to_timestamp_ms, utc_now
from ....utils.validation import require_text
from ...permissions import Permission, require_permission
from ..entities.user_profile import UserGroup
from ..repositories.profile_repository import ProfileRepository

logger = logging.getLogger(__name__)


class UserGroupService:
    """Creates user groups and manages their membership."""

    def __init__(
        self,
        store: DocumentStore,
        profiles: ProfileRepository,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.profiles = profiles
        self.clock = clock

    async def _authorize(self, actor_id: Optional[str]) -> None:
        actor = await self.profiles.get_actor(actor_id)
        require_permission(actor, Permission.MANAGE_USER_GROUPS)

    async def _require_group(self, group_id: str) -> UserGroup:
        document = await self.store.get(Collections.USER_GROUPS, GroupId.parse(group_id))
        if document is None:
            raise EntityNotFoundError("UserGroup", group_id)
        return UserGroup.from_document(document)

    @service_operation("create user group")
    async def create_group(
        self,
        actor_id: Optional[str],
        name: str,
        description: Optional[str] = None,
    ) -> UserGroup:
        await self._authorize(actor_id)
        group = UserGroup(
            name=require_text(name, "name"),
            description=description,
            created_by=actor_id,
            created_at=self.clock(),
        )
        group.id = await self.store.insert(Collections.USER_GROUPS, group.to_document())
        logger.info(f"Created user group {group.id} ({group.name})")
        return group

    @service_operation("delete user group")
    async def delete_group(self, actor_id: Optional[str], group_id: str) -> None:
        """Delete a group together with its memberships and every grant targeting it."""
        await self._authorize(actor_id)
        group = await self._require_group(group_id)

        for member in await self.store.query(Collections.USER_GROUP_MEMBERS, {"group_id": group.id}):
            await self.store.delete(Collections.USER_GROUP_MEMBERS, member["id"])
        for collection in (Collections.CONTENT_ACCESS, Collections.BUNDLE_ACCESS):
            for grant in await self.store.query(collection, {"user_group_id": group.id}):
                await self.store.delete(collection, grant["id"])

        await self.store.delete(Collections.USER_GROUPS, group.id)
        logger.info(f"Deleted user group {group.id}")

    @service_operation("add group member")
    async def add_member(self, actor_id: Optional[str], group_id: str, user_id: str) -> str:
        await self._authorize(actor_id)
        group = await self._require_group(group_id)
        user_id = UserId.parse(user_id)

        existing = await self.store.query(
            Collections.USER_GROUP_MEMBERS, {"group_id": group.id, "user_id": user_id}
        )
        if existing:
            raise DuplicateResourceError("User is already in this group")

        try:
            return await self.store.insert(Collections.USER_GROUP_MEMBERS, {
                "group_id": group.id,
                "user_id": user_id,
                "added_by": actor_id,
                "added_at": to_timestamp_ms(self.clock()),
            })
        except DuplicateKeyError as e:
            raise DuplicateResourceError("User is already in this group") from e

    @service_operation("remove group member")
    async def remove_member(self, actor_id: Optional[str], group_id: str, user_id: str) -> None:
        await self._authorize(actor_id)
        group = await self._require_group(group_id)
        memberships = await self.store.query(
            Collections.USER_GROUP_MEMBERS, {"group_id": group.id, "user_id": UserId.parse(user_id)}
        )
        if not memberships:
            raise InvalidStateError("User is not in this group")
        for membership in memberships:
            await self.store.delete(Collections.USER_GROUP_MEMBERS, membership["id"])

    async def list_members(self, actor_id: Optional[str], group_id: str) -> List[str]:
        await self._authorize(actor_id)
        group = await self._require_group(group_id)
        memberships = await self.store.query(Collections.USER_GROUP_MEMBERS, {"group_id": group.id})
        return [m["user_id"] for m in memberships]

    async def list_groups(self, actor_id: Optional[str]) -> List[UserGroup]:
        await self._authorize(actor_id)
        groups = []
        for document in await self.store.query(Collections.USER_GROUPS):
            group = UserGroup.from_document(document)
            members = await self.store.query(Collections.USER_GROUP_MEMBERS, {"group_id": group.id})
            group.member_ids = [m["user_id"] for m in members]
            groups.append(group)
        return groups

    async def groups_for_user(self, user_id: str) -> List[str]:
        """Ids of the groups a user currently belongs to."""
        memberships = await self.store.query(Collections.USER_GROUP_MEMBERS, {"user_id": user_id})
        return [m["group_id"] for m in memberships]
