"""Third-party content shares.

A share token lets anyone holding it view one content item, without an
account, until the share expires. Shares sit outside the grant system: they
never create grants and grants never cover them.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from ....config.constants import AccessPath, Collections
from ....config.settings import EduMediaSettings, get_settings
from ....core.exceptions import (
    ConcurrentModificationError,
    EntityNotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from ....core.value_objects import ContentId
from ....protocols import DocumentStore
from ....utils.error_handling import service_operation
from ....utils.timezone import days_from, to_timestamp_ms, utc_now
from ....utils.validation import normalize_email
from ...access.entities.resolution import AccessResolution
from ...access.services.access_resolver import AccessResolver, gate_failure
from ...access.services.public_content_service import PublicContentService
from ...notifications.services.dispatcher import NotificationDispatcher
from ...permissions import Permission, effective_permissions
from ...users.repositories.profile_repository import ProfileRepository
from ..entities.tokens import ContentShare, SharedContentView
from .code_generator import CodeGenerator

logger = logging.getLogger(__name__)

# Attempts at bumping the view counter before giving up on a contended share
_VIEW_COUNT_ATTEMPTS = 5


class ShareService:
    """Mints, resolves and manages third-party share links."""

    def __init__(
        self,
        store: DocumentStore,
        codes: CodeGenerator,
        resolver: AccessResolver,
        viewer: PublicContentService,
        profiles: ProfileRepository,
        notifications: Optional[NotificationDispatcher] = None,
        settings: Optional[EduMediaSettings] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.codes = codes
        self.resolver = resolver
        self.viewer = viewer
        self.profiles = profiles
        self.notifications = notifications
        self.settings = settings or get_settings()
        self.clock = clock

    async def _get(self, share_id: str) -> ContentShare:
        document = await self.store.get(Collections.CONTENT_SHARES, share_id)
        if document is None:
            raise EntityNotFoundError("ContentShare", share_id)
        return ContentShare.from_document(document)

    async def _find_by_token(self, access_token: str) -> Optional[ContentShare]:
        if not access_token:
            return None
        documents = await self.store.query(Collections.CONTENT_SHARES, {"access_token": access_token})
        return ContentShare.from_document(documents[0]) if documents else None

    @service_operation("create share", log_level=logging.INFO)
    async def create_share(
        self,
        actor_id: Optional[str],
        content_id: str,
        recipient_email: Optional[str] = None,
        recipient_name: Optional[str] = None,
        message: Optional[str] = None,
        expires_in_days: Optional[int] = None,
    ) -> ContentShare:
        """Mint a share link after checking the sharer's eligibility.

        Raises:
            PermissionDeniedError: the sharer may not share this item
        """
        sharer = await self.profiles.get_actor(actor_id)
        content_id = ContentId.parse(content_id)
        eligibility = await self.resolver.can_share_content(content_id, actor_id)
        if not eligibility.allowed:
            raise PermissionDeniedError(eligibility.reason or "You don't have permission to share this content")

        if expires_in_days is None:
            expires_in_days = self.settings.default_share_expiry_days
        if expires_in_days is not None and (not isinstance(expires_in_days, int) or expires_in_days < 1):
            raise ValidationError("Share expiry must be a positive number of days", field="expires_in_days")

        now = self.clock()
        share = ContentShare(
            content_id=content_id,
            shared_by=actor_id,
            access_token="",
            recipient_email=normalize_email(recipient_email),
            recipient_name=recipient_name,
            message=message,
            expires_at=days_from(now, expires_in_days),
            created_at=now,
        )

        def build(token: str):
            share.access_token = token
            return share.to_document()

        share.id, share.access_token = await self.codes.insert_with_unique_code(
            Collections.CONTENT_SHARES,
            "access_token",
            self.settings.share_token_charset,
            self.settings.share_token_length,
            build,
        )
        logger.info(f"Share {share.id} of content {content_id} created by {actor_id}")

        if share.recipient_email and self.notifications is not None:
            content = await self.resolver.contents.get(content_id)
            await self.notifications.notify_content_shared(
                recipient_email=share.recipient_email,
                recipient_name=recipient_name,
                sharer_name=sharer.display_name if sharer else "Someone",
                content_title=content.title,
                access_token=share.access_token,
                message=message,
            )
        return share

    async def _record_view(self, share: ContentShare, now: datetime) -> None:
        view_count = share.view_count
        for _ in range(_VIEW_COUNT_ATTEMPTS):
            try:
                await self.store.patch(
                    Collections.CONTENT_SHARES,
                    share.id,
                    {"view_count": view_count + 1, "last_viewed_at": to_timestamp_ms(now)},
                    expected={"view_count": view_count},
                )
                return
            except ConcurrentModificationError:
                current = await self._get(share.id)
                view_count = current.view_count
        logger.warning(f"Could not record view of share {share.id}: counter under contention")

    async def resolve_share(self, access_token: str) -> SharedContentView:
        """Resolve a share link for an anonymous viewer.

        Every successful resolution bumps the share's view counter.
        """
        share = await self._find_by_token(access_token)
        if share is None:
            return SharedContentView(resolution=AccessResolution.deny("Invalid share link"))

        now = self.clock()
        if share.is_expired_at(now):
            return SharedContentView(
                resolution=AccessResolution.deny("This share link has expired"),
                expires_at=share.expires_at,
            )

        content = await self.resolver.contents.find(share.content_id)
        if content is None:
            return SharedContentView(resolution=AccessResolution.deny("Content not found"))
        reason = gate_failure(content, now)
        if reason:
            return SharedContentView(resolution=AccessResolution.deny(reason))

        await self._record_view(share, now)
        sharer = await self.profiles.get_by_user_id(share.shared_by)
        return SharedContentView(
            resolution=AccessResolution.allow(AccessPath.SHARE_TOKEN),
            content=await self.viewer.render(content),
            shared_by_name=sharer.display_name if sharer else "Unknown",
            message=share.message,
            expires_at=share.expires_at,
        )

    async def list_my_shares(self, actor_id: Optional[str]) -> List[ContentShare]:
        await self.profiles.get_actor(actor_id)
        documents = await self.store.query(Collections.CONTENT_SHARES, {"shared_by": actor_id})
        shares = [ContentShare.from_document(doc) for doc in documents]
        return sorted(shares, key=lambda s: to_timestamp_ms(s.created_at) or 0, reverse=True)

    async def list_content_shares(self, actor_id: Optional[str], content_id: str) -> List[ContentShare]:
        """Shares of one item; visible to its creator and to access managers."""
        actor = await self.profiles.get_actor(actor_id)
        content = await self.resolver.contents.get(content_id)
        if not content.is_creator(actor_id) and Permission.MANAGE_CONTENT_ACCESS not in effective_permissions(actor):
            raise PermissionDeniedError(
                "Not permitted to view shares of this content",
                required=[Permission.MANAGE_CONTENT_ACCESS],
            )
        documents = await self.store.query(Collections.CONTENT_SHARES, {"content_id": content.id})
        return [ContentShare.from_document(doc) for doc in documents]

    @service_operation("delete share")
    async def delete_share(self, actor_id: Optional[str], share_id: str) -> None:
        actor = await self.profiles.get_actor(actor_id)
        share = await self._get(share_id)
        if share.shared_by != actor_id and Permission.MANAGE_CONTENT_ACCESS not in effective_permissions(actor):
            raise PermissionDeniedError(
                "You don't have permission to delete this share",
                required=[Permission.MANAGE_CONTENT_ACCESS],
            )
        await self.store.delete(Collections.CONTENT_SHARES, share.id)
        logger.info(f"Share {share.id} deleted by {actor_id}")
