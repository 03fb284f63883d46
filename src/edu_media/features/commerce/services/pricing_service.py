"""Pricing management for content items and bundles."""

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Union

from ....config.constants import Collections, PricingTarget
from ....core.exceptions import EntityNotFoundError, InvalidStateError
from ....core.value_objects import DocumentId
from ....protocols import DocumentStore
from ....utils.error_handling import service_operation
from ....utils.timezone import to_timestamp_ms, utc_now
from ....utils.validation import parse_enum
from ...permissions import Permission, require_permission
from ...users.repositories.profile_repository import ProfileRepository
from ..entities.pricing import Pricing

logger = logging.getLogger(__name__)

_TARGET_COLLECTIONS = {
    PricingTarget.CONTENT: Collections.CONTENT,
    PricingTarget.BUNDLE: Collections.CONTENT_BUNDLES,
}


class PricingService:
    """Keeps at most one active pricing record per content item or bundle."""

    def __init__(
        self,
        store: DocumentStore,
        profiles: ProfileRepository,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.profiles = profiles
        self.clock = clock

    async def _active_records(self, target_type: PricingTarget, target_id: str) -> List[Pricing]:
        documents = await self.store.query(Collections.PRICING, {
            "target_type": target_type.value,
            "target_id": target_id,
            "is_active": True,
        })
        return [Pricing.from_document(doc) for doc in documents]

    async def _deactivate(self, records: List[Pricing]) -> None:
        now_ms = to_timestamp_ms(self.clock())
        for record in records:
            await self.store.patch(Collections.PRICING, record.id, {"is_active": False, "deactivated_at": now_ms})

    @service_operation("set pricing", log_level=logging.INFO)
    async def set_pricing(
        self,
        actor_id: Optional[str],
        target_type: Union[PricingTarget, str],
        target_id: str,
        price: int,
        currency: str,
        access_duration: Optional[timedelta] = None,
    ) -> Pricing:
        """Make a new pricing record current for the target, deactivating the previous one."""
        actor = await self.profiles.get_actor(actor_id)
        require_permission(actor, Permission.SET_CONTENT_PRICING)
        target_type = parse_enum(PricingTarget, target_type, "target_type")
        target_id = DocumentId.parse(target_id)
        if await self.store.get(_TARGET_COLLECTIONS[target_type], target_id) is None:
            raise EntityNotFoundError(target_type.value.capitalize(), target_id)

        pricing = Pricing(
            target_type=target_type,
            target_id=target_id,
            price=price,
            currency=currency,
            access_duration=access_duration,
            created_by=actor_id,
            created_at=self.clock(),
        )
        await self._deactivate(await self._active_records(target_type, target_id))
        pricing.id = await self.store.insert(Collections.PRICING, pricing.to_document())
        logger.info(
            f"Priced {target_type.value} {target_id} at {pricing.price} {pricing.currency} "
            f"(pricing {pricing.id})"
        )
        return pricing

    @service_operation("remove pricing", log_level=logging.INFO)
    async def remove_pricing(
        self,
        actor_id: Optional[str],
        target_type: Union[PricingTarget, str],
        target_id: str,
    ) -> None:
        """Take a target off sale. Past orders and their grants are unaffected."""
        actor = await self.profiles.get_actor(actor_id)
        require_permission(actor, Permission.SET_CONTENT_PRICING)
        target_type = parse_enum(PricingTarget, target_type, "target_type")
        records = await self._active_records(target_type, DocumentId.parse(target_id))
        if not records:
            raise InvalidStateError(f"No active pricing for {target_type.value} {target_id}")
        await self._deactivate(records)

    async def get_active_pricing(
        self,
        target_type: Union[PricingTarget, str],
        target_id: str,
    ) -> Optional[Pricing]:
        """Current pricing of a target, or None when it is not for sale."""
        target_type = parse_enum(PricingTarget, target_type, "target_type")
        records = await self._active_records(target_type, DocumentId.parse(target_id))
        if not records:
            return None
        if len(records) > 1:
            logger.warning(f"{len(records)} active pricing records for {target_type.value} {target_id}")
        return max(records, key=lambda r: to_timestamp_ms(r.created_at) or 0)

    async def get_pricing(self, pricing_id: str) -> Pricing:
        document = await self.store.get(Collections.PRICING, DocumentId.parse(pricing_id))
        if document is None:
            raise EntityNotFoundError("Pricing", pricing_id)
        return Pricing.from_document(document)

    async def list_active_pricing(
        self,
        actor_id: Optional[str],
        target_type: Optional[PricingTarget] = None,
    ) -> List[Pricing]:
        actor = await self.profiles.get_actor(actor_id)
        require_permission(actor, Permission.SET_CONTENT_PRICING)
        filters = {"is_active": True}
        if target_type is not None:
            filters["target_type"] = parse_enum(PricingTarget, target_type, "target_type").value
        documents = await self.store.query(Collections.PRICING, filters)
        return [Pricing.from_document(doc) for doc in documents]
