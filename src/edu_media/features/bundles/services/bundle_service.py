"""Content bundle management."""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from ....config.constants import Collections, PricingTarget
from ....core.exceptions import (
    DuplicateKeyError,
    DuplicateResourceError,
    EntityNotFoundError,
    ValidationError,
)
from ....core.value_objects import BundleId, ContentId
from ....protocols import DocumentStore
from ....utils.error_handling import service_operation
from ....utils.timezone import to_timestamp_ms, utc_now
from ....utils.validation import require_text
from ...content.entities.content_item import ContentItem
from ...content.repositories.content_repository import ContentRepository
from ...permissions import Permission, require_permission
from ...users.repositories.profile_repository import ProfileRepository
from ..entities.bundle import BundleItem, ContentBundle

logger = logging.getLogger(__name__)


class BundleService:
    """Creates bundles and manages their ordered membership.

    Every operation requires ``manage_content_groups``.
    """

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

    async def _authorize(self, actor_id: Optional[str]) -> None:
        actor = await self.profiles.get_actor(actor_id)
        require_permission(actor, Permission.MANAGE_CONTENT_GROUPS)

    async def _require_bundle(self, bundle_id: str) -> ContentBundle:
        document = await self.store.get(Collections.CONTENT_BUNDLES, BundleId.parse(bundle_id))
        if document is None:
            raise EntityNotFoundError("ContentBundle", bundle_id)
        return ContentBundle.from_document(document)

    async def _items(self, bundle_id: str) -> List[BundleItem]:
        documents = await self.store.query(Collections.BUNDLE_ITEMS, {"bundle_id": bundle_id})
        return sorted((BundleItem.from_document(doc) for doc in documents), key=lambda item: item.sort_key)

    @service_operation("create bundle", log_level=logging.INFO)
    async def create_bundle(
        self,
        actor_id: Optional[str],
        name: str,
        description: Optional[str] = None,
    ) -> ContentBundle:
        await self._authorize(actor_id)
        now = self.clock()
        bundle = ContentBundle(
            name=require_text(name, "name"),
            description=description,
            created_by=actor_id,
            created_at=now,
            updated_at=now,
        )
        bundle.id = await self.store.insert(Collections.CONTENT_BUNDLES, bundle.to_document())
        logger.info(f"Created bundle {bundle.id} ({bundle.name})")
        return bundle

    @service_operation("update bundle")
    async def update_bundle(
        self,
        actor_id: Optional[str],
        bundle_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> ContentBundle:
        """Rename, describe or (de)activate a bundle; None leaves a field unchanged."""
        await self._authorize(actor_id)
        bundle = await self._require_bundle(bundle_id)
        fields = {}
        if name is not None:
            fields["name"] = require_text(name, "name")
        if description is not None:
            fields["description"] = description
        if is_active is not None:
            fields["is_active"] = bool(is_active)
        if not fields:
            return bundle
        fields["updated_at"] = to_timestamp_ms(self.clock())
        await self.store.patch(Collections.CONTENT_BUNDLES, bundle.id, fields)
        return await self._require_bundle(bundle.id)

    async def list_bundles(self, actor_id: Optional[str]) -> List[ContentBundle]:
        await self._authorize(actor_id)
        bundles = [ContentBundle.from_document(doc) for doc in await self.store.query(Collections.CONTENT_BUNDLES)]
        return sorted(bundles, key=lambda b: b.name.lower())

    async def get_bundle_with_items(self, actor_id: Optional[str], bundle_id: str) -> ContentBundle:
        """Bundle with its items sorted by position; items without a position come last."""
        await self._authorize(actor_id)
        bundle = await self._require_bundle(bundle_id)
        bundle.items = await self._items(bundle.id)
        return bundle

    async def list_bundle_content(self, actor_id: Optional[str], bundle_id: str) -> List[ContentItem]:
        """Content items of a bundle in bundle order, skipping deleted ones."""
        bundle = await self.get_bundle_with_items(actor_id, bundle_id)
        items = []
        for item in bundle.items:
            content = await self.contents.find(item.content_id)
            if content is not None:
                items.append(content)
        return items

    async def available_content(self, actor_id: Optional[str], bundle_id: str) -> List[ContentItem]:
        """Content items not yet in the bundle."""
        bundle = await self.get_bundle_with_items(actor_id, bundle_id)
        member_ids = set(bundle.content_ids)
        return [c for c in await self.contents.list() if c.id not in member_ids]

    @service_operation("add bundle item")
    async def add_item(
        self,
        actor_id: Optional[str],
        bundle_id: str,
        content_id: str,
        order: Optional[int] = None,
    ) -> BundleItem:
        await self._authorize(actor_id)
        bundle = await self._require_bundle(bundle_id)
        content = await self.contents.get(ContentId.parse(content_id))
        if order is not None and (not isinstance(order, int) or order < 0):
            raise ValidationError("Order must be a non-negative integer", field="order")

        existing = await self.store.query(
            Collections.BUNDLE_ITEMS, {"bundle_id": bundle.id, "content_id": content.id}
        )
        if existing:
            raise DuplicateResourceError("Content is already in this group")

        item = BundleItem(
            bundle_id=bundle.id,
            content_id=content.id,
            added_by=actor_id,
            order=order,
            added_at=self.clock(),
        )
        try:
            item.id = await self.store.insert(Collections.BUNDLE_ITEMS, item.to_document())
        except DuplicateKeyError as e:
            raise DuplicateResourceError("Content is already in this group") from e
        logger.info(f"Added content {content.id} to bundle {bundle.id}")
        return item

    @service_operation("remove bundle item")
    async def remove_item(self, actor_id: Optional[str], bundle_id: str, content_id: str) -> None:
        await self._authorize(actor_id)
        bundle = await self._require_bundle(bundle_id)
        items = await self.store.query(
            Collections.BUNDLE_ITEMS, {"bundle_id": bundle.id, "content_id": ContentId.parse(content_id)}
        )
        if not items:
            raise EntityNotFoundError("BundleItem", f"{bundle.id}/{content_id}")
        for item in items:
            await self.store.delete(Collections.BUNDLE_ITEMS, item["id"])
        logger.info(f"Removed content {content_id} from bundle {bundle.id}")

    @service_operation("delete bundle", log_level=logging.INFO)
    async def delete_bundle(self, actor_id: Optional[str], bundle_id: str) -> None:
        """Delete a bundle with its items, grants, pricing and purchase requests. Member content is untouched."""
        await self._authorize(actor_id)
        bundle = await self._require_bundle(bundle_id)
        dependents = (
            (Collections.BUNDLE_ITEMS, {"bundle_id": bundle.id}),
            (Collections.BUNDLE_ACCESS, {"bundle_id": bundle.id}),
            (Collections.PRICING, {"target_type": PricingTarget.BUNDLE.value, "target_id": bundle.id}),
            (Collections.PURCHASE_REQUESTS, {"target_type": PricingTarget.BUNDLE.value, "target_id": bundle.id}),
        )
        for collection, filters in dependents:
            for document in await self.store.query(collection, filters):
                await self.store.delete(collection, document["id"])
        await self.store.delete(Collections.CONTENT_BUNDLES, bundle.id)
        logger.info(f"Deleted bundle {bundle.id}")
