"""Grant storage for content-level and bundle-level access grants."""

import logging
from datetime import datetime
from typing import List, Optional

from ....config.constants import Collections, PricingTarget
from ....core.exceptions import EntityNotFoundError
from ....protocols import DocumentStore
from ....utils.timezone import to_timestamp_ms
from ..entities.access_grant import AccessGrant

logger = logging.getLogger(__name__)

GRANT_COLLECTIONS = {
    PricingTarget.CONTENT: Collections.CONTENT_ACCESS,
    PricingTarget.BUNDLE: Collections.BUNDLE_ACCESS,
}


class GrantRepository:
    """Reads and writes access grants; never deletes expired ones on its own."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def insert(self, grant: AccessGrant) -> AccessGrant:
        grant.id = await self.store.insert(GRANT_COLLECTIONS[grant.target_type], grant.to_document())
        return grant

    async def get(self, target_type: PricingTarget, grant_id: str) -> AccessGrant:
        target_type = PricingTarget(target_type)
        document = await self.store.get(GRANT_COLLECTIONS[target_type], grant_id)
        if document is None:
            raise EntityNotFoundError("AccessGrant", grant_id)
        return AccessGrant.from_document(document, target_type)

    async def for_target(self, target_type: PricingTarget, target_id: str) -> List[AccessGrant]:
        target_type = PricingTarget(target_type)
        key = "content_id" if target_type is PricingTarget.CONTENT else "bundle_id"
        documents = await self.store.query(GRANT_COLLECTIONS[target_type], {key: target_id})
        return [AccessGrant.from_document(doc, target_type) for doc in documents]

    async def valid_for_target(
        self,
        target_type: PricingTarget,
        target_id: str,
        now: datetime,
    ) -> List[AccessGrant]:
        return [g for g in await self.for_target(target_type, target_id) if g.is_valid_at(now)]

    async def expire(self, target_type: PricingTarget, grant_id: str, now: datetime) -> None:
        """Make a grant inert without deleting it."""
        await self.store.patch(GRANT_COLLECTIONS[PricingTarget(target_type)], grant_id, {
            "expires_at": to_timestamp_ms(now),
        })

    async def delete(self, target_type: PricingTarget, grant_id: str) -> None:
        await self.store.delete(GRANT_COLLECTIONS[PricingTarget(target_type)], grant_id)

    async def active_bundle_ids_for_content(self, content_id: str) -> List[str]:
        """Ids of active bundles that contain a content item."""
        items = await self.store.query(Collections.BUNDLE_ITEMS, {"content_id": content_id})
        bundle_ids = []
        for item in items:
            bundle = await self.store.get(Collections.CONTENT_BUNDLES, item["bundle_id"])
            if bundle is not None and bundle.get("is_active", True) and item["bundle_id"] not in bundle_ids:
                bundle_ids.append(item["bundle_id"])
        return bundle_ids

    async def has_active_pricing(self, target_type: PricingTarget, target_id: str) -> bool:
        records = await self.store.query(Collections.PRICING, {
            "target_type": PricingTarget(target_type).value,
            "target_id": target_id,
            "is_active": True,
        })
        return bool(records)

    async def group_ids_for_user(self, user_id: Optional[str]) -> List[str]:
        if not user_id:
            return []
        memberships = await self.store.query(Collections.USER_GROUP_MEMBERS, {"user_id": user_id})
        return [m["group_id"] for m in memberships]
