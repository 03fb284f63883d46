"""Document-store access for purchase requests."""

import logging
from datetime import datetime
from typing import List, Optional

from ....config.constants import Collections, PricingTarget, PurchaseRequestStatus
from ....core.exceptions import ConcurrentModificationError, EntityNotFoundError, InvalidStateError
from ....core.value_objects import PurchaseRequestId
from ....protocols import DocumentStore
from ....utils.timezone import to_timestamp_ms
from ..entities.purchase_request import PurchaseRequest

logger = logging.getLogger(__name__)


class PurchaseRequestRepository:
    """Reads and writes purchase requests; lists are newest first."""

    def __init__(self, store: DocumentStore):
        self.store = store

    async def get(self, request_id: str) -> PurchaseRequest:
        document = await self.store.get(Collections.PURCHASE_REQUESTS, PurchaseRequestId.parse(request_id))
        if document is None:
            raise EntityNotFoundError("PurchaseRequest", request_id)
        return PurchaseRequest.from_document(document)

    async def insert(self, request: PurchaseRequest) -> PurchaseRequest:
        request.id = await self.store.insert(Collections.PURCHASE_REQUESTS, request.to_document())
        return request

    async def query(self, **filters) -> List[PurchaseRequest]:
        documents = await self.store.query(Collections.PURCHASE_REQUESTS, filters or None)
        requests = [PurchaseRequest.from_document(doc) for doc in documents]
        return sorted(requests, key=lambda r: to_timestamp_ms(r.created_at) or 0, reverse=True)

    async def for_user_target(
        self,
        user_id: str,
        target_type: PricingTarget,
        target_id: str,
    ) -> List[PurchaseRequest]:
        return await self.query(user_id=user_id, target_type=target_type.value, target_id=target_id)

    async def find_usable(
        self,
        user_id: str,
        target_type: PricingTarget,
        target_id: str,
    ) -> Optional[PurchaseRequest]:
        """The approved, unused request of a user for a target, if any."""
        for request in await self.for_user_target(user_id, target_type, target_id):
            if request.is_usable:
                return request
        return None

    async def consume(self, request: PurchaseRequest, now: datetime) -> None:
        """Mark an approved request as used by a completed purchase.

        Raises:
            InvalidStateError: the request is not approved or was already used
        """
        try:
            await self.store.patch(
                Collections.PURCHASE_REQUESTS,
                request.id,
                {"purchase_completed_at": to_timestamp_ms(now)},
                expected={"status": PurchaseRequestStatus.APPROVED.value, "purchase_completed_at": None},
            )
        except ConcurrentModificationError as e:
            raise InvalidStateError("Purchase request has already been used") from e
        logger.debug(f"Purchase request {request.id} consumed")

    async def release(self, request_id: str) -> None:
        """Undo ``consume`` when the purchase it backed did not go through."""
        await self.store.patch(Collections.PURCHASE_REQUESTS, request_id, {"purchase_completed_at": None})
