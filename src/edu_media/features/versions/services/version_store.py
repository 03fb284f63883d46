"""Version store for content items.

Snapshots are append-only. A revert never rewrites history: it records the
pre-revert state, applies the target's fields, then records the result.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from ....config.constants import Collections
from ....core.exceptions import (
    ConflictError,
    DuplicateKeyError,
    EntityNotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from ....protocols import DocumentStore
from ....utils.error_handling import service_operation
from ....utils.timezone import to_timestamp_ms, utc_now
from ...content.entities.content_item import ContentItem, VERSIONED_FIELDS
from ...content.entities.workflow import can_edit
from ...content.repositories.content_repository import ContentRepository
from ...permissions import Permission, effective_permissions
from ...users.repositories.profile_repository import ProfileRepository
from ..entities.content_version import ContentVersion, RevertResult

logger = logging.getLogger(__name__)

# Revert restores content fields but keeps the live workflow status
REVERTIBLE_FIELDS = tuple(name for name in VERSIONED_FIELDS if name != "status")


class VersionStore:
    """Records and restores content version snapshots."""

    def __init__(
        self,
        store: DocumentStore,
        contents: ContentRepository,
        profiles: ProfileRepository,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.contents = contents
        self.profiles = profiles
        self.clock = clock

    async def _versions(self, content_id: str) -> List[ContentVersion]:
        documents = await self.store.query(Collections.CONTENT_VERSIONS, {"content_id": content_id})
        return [ContentVersion.from_document(doc) for doc in documents]

    async def snapshot(
        self,
        content: ContentItem,
        author_id: str,
        change_description: Optional[str] = None,
    ) -> int:
        """Record the current field values of ``content`` as the next version.

        Returns:
            The new version number, which also becomes ``current_version``

        Raises:
            ConflictError: another snapshot claimed the same number first
        """
        existing = await self._versions(content.id)
        version_number = len(existing) + 1

        version = ContentVersion(
            content_id=content.id,
            version_number=version_number,
            created_by=author_id,
            created_at=self.clock(),
            values=content.versioned_values(),
            change_description=change_description,
        )
        try:
            await self.store.insert(Collections.CONTENT_VERSIONS, version.to_document())
        except DuplicateKeyError as e:
            raise ConflictError(
                f"Version {version_number} of content {content.id} was written concurrently"
            ) from e

        await self.store.patch(Collections.CONTENT, content.id, {"current_version": version_number})
        content.current_version = version_number
        logger.debug(f"Snapshot v{version_number} of content {content.id} by {author_id}")
        return version_number

    async def _authorize_read(self, actor_id: Optional[str], content: ContentItem) -> None:
        actor = await self.profiles.get_actor(actor_id)
        permissions = effective_permissions(actor)
        if content.is_creator(actor_id):
            return
        if permissions.isdisjoint({Permission.EDIT_CONTENT, Permission.REVIEW_CONTENT}):
            raise PermissionDeniedError("Not permitted to view version history")

    async def get_history(self, actor_id: Optional[str], content_id: str) -> List[ContentVersion]:
        """All versions of a content item, newest first."""
        content = await self.contents.get(content_id)
        await self._authorize_read(actor_id, content)
        versions = await self._versions(content.id)
        return sorted(versions, key=lambda v: v.version_number, reverse=True)

    async def get_version(
        self,
        actor_id: Optional[str],
        content_id: str,
        version_number: int,
    ) -> ContentVersion:
        content = await self.contents.get(content_id)
        await self._authorize_read(actor_id, content)
        return await self._get_version(content.id, version_number)

    async def _get_version(self, content_id: str, version_number: int) -> ContentVersion:
        if not isinstance(version_number, int) or version_number < 1:
            raise ValidationError("Version number must be a positive integer", field="version_number")
        documents = await self.store.query(
            Collections.CONTENT_VERSIONS,
            {"content_id": content_id, "version_number": version_number},
        )
        if not documents:
            raise EntityNotFoundError("ContentVersion", f"{content_id}@v{version_number}")
        return ContentVersion.from_document(documents[0])

    @service_operation("revert content", log_level=logging.INFO)
    async def revert(
        self,
        actor_id: Optional[str],
        content_id: str,
        target_version: int,
        change_description: Optional[str] = None,
    ) -> RevertResult:
        """Restore the fields of ``target_version`` onto the live content.

        The actor needs the same rights as for an edit in the current status.
        Two versions are appended: the pre-revert state and the reverted state.
        """
        actor = await self.profiles.get_actor(actor_id)
        content = await self.contents.get(content_id)
        if not can_edit(content.status, effective_permissions(actor), content.is_creator(actor_id)):
            raise PermissionDeniedError("Not permitted to revert this content")

        target = await self._get_version(content.id, target_version)

        pre_revert_version = await self.snapshot(
            content, actor_id, f"Saving before revert to version {target_version}"
        )

        fields = {name: target.values.get(name) for name in REVERTIBLE_FIELDS}
        fields["updated_at"] = to_timestamp_ms(self.clock())
        reverted = await self.contents.patch(content.id, fields)

        version_number = await self.snapshot(
            reverted, actor_id, change_description or f"Reverted to version {target_version}"
        )
        logger.info(f"Content {content.id} reverted to v{target_version} (now v{version_number})")
        return RevertResult(pre_revert_version=pre_revert_version, version_number=version_number)

    async def delete_for_content(self, content_id: str) -> int:
        """Remove every version of a deleted content item."""
        documents = await self.store.query(Collections.CONTENT_VERSIONS, {"content_id": content_id})
        for document in documents:
            await self.store.delete(Collections.CONTENT_VERSIONS, document["id"])
        return len(documents)
