"""Content management service.

Every mutation authorizes against the permission registry before touching
storage. Workflow transitions are written with a conditional patch on the
status they were validated against, so a concurrent transition cannot be
silently overwritten.
"""

import dataclasses
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union

from ....config.constants import Collections, ContentStatus, ContentType, PricingTarget, WorkflowAction
from ....core.exceptions import (
    ConcurrentModificationError,
    InvalidStateError,
    InvalidTransitionError,
    PermissionDeniedError,
    ValidationError,
)
from ....protocols import BlobStore, DocumentStore
from ....utils.error_handling import service_operation
from ....utils.timezone import to_timestamp_ms, utc_now
from ....utils.validation import parse_enum, parse_model
from ...notifications.services.dispatcher import NotificationDispatcher
from ...permissions import Permission, effective_permissions, require_any_permission, require_permission
from ...users.repositories.profile_repository import ProfileRepository
from ...versions.services.version_store import VersionStore
from ..entities.content_item import ContentItem
from ..entities.workflow import WORKFLOW_TRANSITIONS, apply_transition, can_delete, can_edit
from ..models.requests import CreateContentRequest, UpdateContentRequest
from ..repositories.content_repository import ContentRepository

logger = logging.getLogger(__name__)

# Transitions whose outcome is emailed to the content's creator
NOTIFIED_ACTIONS = frozenset({
    WorkflowAction.APPROVE,
    WorkflowAction.REJECT,
    WorkflowAction.REQUEST_CHANGES,
})


class ContentService:
    """Create, edit, move through the workflow, archive and delete content."""

    def __init__(
        self,
        store: DocumentStore,
        contents: ContentRepository,
        profiles: ProfileRepository,
        versions: VersionStore,
        notifications: Optional[NotificationDispatcher] = None,
        blobs: Optional[BlobStore] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.contents = contents
        self.profiles = profiles
        self.versions = versions
        self.notifications = notifications
        self.blobs = blobs
        self.clock = clock

    # Reads

    async def get_content(self, actor_id: Optional[str], content_id: str) -> ContentItem:
        """Management read of a content item, including its password."""
        actor = await self.profiles.get_actor(actor_id)
        content = await self.contents.get(content_id)
        if not content.is_creator(actor_id):
            require_permission(actor, Permission.VIEW_ALL_CONTENT)
        if content.is_archived and not content.is_creator(actor_id):
            require_any_permission(actor, Permission.VIEW_ARCHIVED_CONTENT, Permission.RESTORE_ARCHIVED_CONTENT)
        return content

    async def list_content(
        self,
        actor_id: Optional[str],
        status: Optional[ContentStatus] = None,
        content_type: Optional[ContentType] = None,
        include_archived: bool = False,
    ) -> List[ContentItem]:
        """Management listing: everything for staff with view rights, otherwise own content."""
        actor = await self.profiles.get_actor(actor_id)
        permissions = effective_permissions(actor)
        if include_archived:
            require_any_permission(actor, Permission.VIEW_ARCHIVED_CONTENT, Permission.RESTORE_ARCHIVED_CONTENT)

        created_by = None if Permission.VIEW_ALL_CONTENT in permissions else actor_id
        items = await self.contents.list(
            status=parse_enum(ContentStatus, status, "status") if status else None,
            content_type=parse_enum(ContentType, content_type, "type") if content_type else None,
            created_by=created_by,
        )
        if not include_archived:
            items = [item for item in items if not item.is_archived]
        return sorted(items, key=lambda c: to_timestamp_ms(c.created_at) or 0, reverse=True)

    async def review_queue(self, actor_id: Optional[str]) -> List[ContentItem]:
        """Content awaiting review, oldest submission first."""
        actor = await self.profiles.get_actor(actor_id)
        require_permission(actor, Permission.REVIEW_CONTENT)
        items = await self.contents.list(status=ContentStatus.REVIEW)
        return sorted(items, key=lambda c: to_timestamp_ms(c.submitted_for_review_at or c.created_at) or 0)

    async def generate_upload_url(self, actor_id: Optional[str]) -> str:
        actor = await self.profiles.get_actor(actor_id)
        require_any_permission(actor, Permission.CREATE_CONTENT, Permission.EDIT_CONTENT)
        if self.blobs is None:
            raise InvalidStateError("No blob store is configured")
        return await self.blobs.generate_upload_url()

    # Authoring

    @service_operation("create content", log_level=logging.INFO)
    async def create_content(
        self,
        actor_id: Optional[str],
        request: Union[CreateContentRequest, Dict[str, Any]],
    ) -> ContentItem:
        """Create a draft and record it as version 1."""
        actor = await self.profiles.get_actor(actor_id)
        require_permission(actor, Permission.CREATE_CONTENT)
        request = parse_model(CreateContentRequest, request)

        now = self.clock()
        content = ContentItem(
            **request.model_dump(),
            created_by=actor_id,
            author_name=actor.display_name if actor else None,
            status=ContentStatus.DRAFT,
            current_version=0,
            created_at=now,
            updated_at=now,
        )
        content = await self.contents.insert(content)
        await self.versions.snapshot(content, actor_id, "Initial version")
        logger.info(f"Content {content.id} created by {actor_id}")
        return content

    @service_operation("update content", log_level=logging.INFO)
    async def update_content(
        self,
        actor_id: Optional[str],
        content_id: str,
        request: Union[UpdateContentRequest, Dict[str, Any]],
        change_description: Optional[str] = None,
    ) -> ContentItem:
        """Apply an edit, snapshotting the pre-change state first.

        Edits that change nothing leave the content and its history untouched.
        """
        actor = await self.profiles.get_actor(actor_id)
        request = parse_model(UpdateContentRequest, request)
        content = await self.contents.get(content_id)

        if not can_edit(content.status, effective_permissions(actor), content.is_creator(actor_id)):
            raise PermissionDeniedError(
                f"Not permitted to edit content in status '{content.status.value}'",
                required=[Permission.EDIT_CONTENT],
            )

        changes = request.changes()
        new_type = changes.get("type", content.type)
        if new_type is ContentType.ARTICLE and changes.get("rich_text_content") is not None and "body" not in changes:
            changes["body"] = changes.pop("rich_text_content")

        try:
            edited = dataclasses.replace(content, **changes)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid content update: {e}") from e

        before = content.to_document()
        after = edited.to_document()
        fields = {name: after[name] for name in after if after[name] != before.get(name)}
        if not fields:
            return content

        await self.versions.snapshot(content, actor_id, change_description)
        fields["updated_at"] = to_timestamp_ms(self.clock())
        try:
            updated = await self.contents.patch(content.id, fields, expected={"status": content.status.value})
        except ConcurrentModificationError as e:
            raise InvalidStateError("Content changed status while it was being edited") from e

        logger.info(f"Content {content.id} edited by {actor_id}: {sorted(fields)}")
        return updated

    async def set_visibility(self, actor_id: Optional[str], content_id: str, is_public: bool) -> ContentItem:
        return await self.update_content(
            actor_id, content_id, {"is_public": bool(is_public)},
            change_description="Made public" if is_public else "Made private",
        )

    # Workflow

    async def _transition(
        self,
        actor_id: Optional[str],
        content_id: str,
        action: WorkflowAction,
        notes: Optional[str] = None,
    ) -> ContentItem:
        actor = await self.profiles.get_actor(actor_id)
        content = await self.contents.get(content_id)
        target = apply_transition(
            content.status,
            action,
            effective_permissions(actor),
            content.is_creator(actor_id),
            note=notes,
        )

        now_ms = to_timestamp_ms(self.clock())
        fields: Dict[str, Any] = {"status": target.value, "updated_at": now_ms}
        if action is WorkflowAction.SUBMIT:
            fields.update(submitted_for_review_at=now_ms, submitted_for_review_by=actor_id)
        elif action is WorkflowAction.APPROVE:
            fields.update(reviewed_at=now_ms, reviewed_by=actor_id, published_at=now_ms)
            if notes:
                fields["review_notes"] = notes.strip()
        elif action in (WorkflowAction.REJECT, WorkflowAction.REQUEST_CHANGES):
            fields.update(reviewed_at=now_ms, reviewed_by=actor_id, review_notes=notes.strip())
        elif action is WorkflowAction.UNPUBLISH:
            fields["published_at"] = None

        try:
            updated = await self.contents.patch(content.id, fields, expected={"status": content.status.value})
        except ConcurrentModificationError:
            current = await self.contents.get(content.id)
            raise InvalidTransitionError(action, current.status, WORKFLOW_TRANSITIONS[action].sources)

        logger.info(
            f"Content {content.id}: {content.status.value} -> {target.value} "
            f"({action.value} by {actor_id})"
        )
        if action in NOTIFIED_ACTIONS:
            await self._notify_author(updated, actor, notes)
        return updated

    async def _notify_author(self, content: ContentItem, reviewer: Any, notes: Optional[str]) -> None:
        if self.notifications is None:
            return
        author = await self.profiles.get_by_user_id(content.created_by)
        if author is None or not author.email:
            logger.debug(f"No email on file for author of content {content.id}")
            return
        await self.notifications.notify_content_status(
            author_email=author.email,
            author_name=author.first_name or "there",
            content_title=content.title,
            new_status=content.status.value,
            reviewer_name=reviewer.display_name if reviewer else "A reviewer",
            review_notes=notes,
        )

    @service_operation("submit for review")
    async def submit_for_review(self, actor_id: Optional[str], content_id: str) -> ContentItem:
        return await self._transition(actor_id, content_id, WorkflowAction.SUBMIT)

    @service_operation("approve content")
    async def approve(self, actor_id: Optional[str], content_id: str, notes: Optional[str] = None) -> ContentItem:
        return await self._transition(actor_id, content_id, WorkflowAction.APPROVE, notes)

    @service_operation("reject content")
    async def reject(self, actor_id: Optional[str], content_id: str, notes: str) -> ContentItem:
        return await self._transition(actor_id, content_id, WorkflowAction.REJECT, notes)

    @service_operation("request changes")
    async def request_changes(self, actor_id: Optional[str], content_id: str, notes: str) -> ContentItem:
        return await self._transition(actor_id, content_id, WorkflowAction.REQUEST_CHANGES, notes)

    @service_operation("unpublish content")
    async def unpublish(self, actor_id: Optional[str], content_id: str) -> ContentItem:
        return await self._transition(actor_id, content_id, WorkflowAction.UNPUBLISH)

    # Archive

    @service_operation("archive content", log_level=logging.INFO)
    async def archive_content(self, actor_id: Optional[str], content_id: str) -> ContentItem:
        actor = await self.profiles.get_actor(actor_id)
        require_permission(actor, Permission.ARCHIVE_CONTENT)
        content = await self.contents.get(content_id)
        if content.is_archived:
            raise InvalidStateError("Content is already archived")
        now_ms = to_timestamp_ms(self.clock())
        return await self.contents.patch(
            content.id,
            {"is_archived": True, "archived_at": now_ms, "archived_by": actor_id, "updated_at": now_ms},
            expected={"is_archived": False},
        )

    @service_operation("restore content", log_level=logging.INFO)
    async def restore_content(self, actor_id: Optional[str], content_id: str) -> ContentItem:
        actor = await self.profiles.get_actor(actor_id)
        require_permission(actor, Permission.RESTORE_ARCHIVED_CONTENT)
        content = await self.contents.get(content_id)
        if not content.is_archived:
            raise InvalidStateError("Content is not archived")
        return await self.contents.patch(
            content.id,
            {
                "is_archived": False,
                "archived_at": None,
                "archived_by": None,
                "updated_at": to_timestamp_ms(self.clock()),
            },
            expected={"is_archived": True},
        )

    # Deletion

    @service_operation("delete content", log_level=logging.INFO)
    async def delete_content(self, actor_id: Optional[str], content_id: str) -> None:
        """Delete a content item and everything that hangs off it.

        Versions, grants, bundle memberships, shares, pricing, purchase requests,
        recommendations and view records go; stored blobs are kept.
        """
        actor = await self.profiles.get_actor(actor_id)
        content = await self.contents.get(content_id)
        if not can_delete(content.status, effective_permissions(actor), content.is_creator(actor_id)):
            raise PermissionDeniedError(
                f"Not permitted to delete content in status '{content.status.value}'",
                required=[Permission.DELETE_CONTENT],
            )

        removed_versions = await self.versions.delete_for_content(content.id)
        dependents = (
            (Collections.CONTENT_ACCESS, {"content_id": content.id}),
            (Collections.BUNDLE_ITEMS, {"content_id": content.id}),
            (Collections.CONTENT_SHARES, {"content_id": content.id}),
            (Collections.PRICING, {"target_type": PricingTarget.CONTENT.value, "target_id": content.id}),
            (Collections.PURCHASE_REQUESTS, {"target_type": PricingTarget.CONTENT.value, "target_id": content.id}),
            (Collections.CONTENT_RECOMMENDATIONS, {"content_id": content.id}),
            (Collections.CONTENT_VIEWS, {"content_id": content.id}),
        )
        for collection, filters in dependents:
            for document in await self.store.query(collection, filters):
                await self.store.delete(collection, document["id"])

        await self.contents.delete(content.id)
        logger.info(f"Content {content.id} deleted by {actor_id} ({removed_versions} versions removed)")
