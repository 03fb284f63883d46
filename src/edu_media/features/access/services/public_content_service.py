"""Viewer-facing content access."""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from ....config.constants import AccessPath, PricingTarget
from ....protocols import BlobStore
from ....utils.timezone import utc_now
from ...content.entities.content_item import ContentItem
from ..entities.access_grant import AccessGrant
from ..entities.resolution import ContentView
from ..repositories.grant_repository import GrantRepository
from .access_resolver import AccessResolver

logger = logging.getLogger(__name__)


class PublicContentService:
    """Resolves access for viewers and returns the viewable form of content.

    When a signed-in viewer unlocks an item with its password, a permanent
    direct grant is minted so later visits skip the prompt.
    """

    def __init__(
        self,
        resolver: AccessResolver,
        grants: GrantRepository,
        blobs: Optional[BlobStore] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.resolver = resolver
        self.grants = grants
        self.blobs = blobs
        self.clock = clock

    async def render(self, content: ContentItem) -> Dict[str, Any]:
        """Public document of ``content`` with fetchable media URLs attached."""
        document = content.public_view()
        if self.blobs is not None:
            document["file_url"] = await self.blobs.get_url(content.file_ref) if content.file_ref else None
            document["thumbnail_url"] = (
                await self.blobs.get_url(content.thumbnail_ref) if content.thumbnail_ref else None
            )
        return document

    async def view(
        self,
        content_id: str,
        requester_id: Optional[str],
        password: Optional[str] = None,
    ) -> ContentView:
        resolution = await self.resolver.resolve(content_id, requester_id, password)
        if not resolution.allowed:
            return ContentView(resolution=resolution)

        content = await self.resolver.contents.get(content_id)
        if resolution.path is AccessPath.PASSWORD and requester_id is not None:
            grant = await self.grants.insert(AccessGrant(
                target_type=PricingTarget.CONTENT,
                target_id=content.id,
                granted_by=requester_id,
                user_id=requester_id,
                can_share=False,
                created_at=self.clock(),
            ))
            logger.info(f"Password unlocked content {content.id} for {requester_id}; minted grant {grant.id}")

        return ContentView(resolution=resolution, content=await self.render(content))
