"""Purchase request workflow: pending requests are approved or denied by staff.

When ``require_purchase_approval`` is set, an approved request is the ticket
``OrderService.create_order`` checks for, and completing the order uses it up.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Union

from ....config.constants import Collections, PricingTarget, PurchaseRequestStatus
from ....core.exceptions import (
    ConcurrentModificationError,
    DuplicateResourceError,
    InvalidStateError,
    PermissionDeniedError,
)
from ....core.value_objects import DocumentId
from ....protocols import DocumentStore
from ....utils.error_handling import service_operation
from ....utils.timezone import to_timestamp_ms, utc_now
from ....utils.validation import parse_enum
from ...commerce.services.order_service import OrderService
from ...commerce.services.pricing_service import PricingService
from ...notifications.services.dispatcher import NotificationDispatcher
from ...permissions import Permission, require_permission
from ...users.repositories.profile_repository import ProfileRepository
from ..entities.purchase_request import PurchaseEligibility, PurchaseRequest
from ..repositories.purchase_request_repository import PurchaseRequestRepository

logger = logging.getLogger(__name__)


class PurchaseRequestService:
    """Creates, reviews and reports on purchase requests."""

    def __init__(
        self,
        store: DocumentStore,
        requests: PurchaseRequestRepository,
        pricing: PricingService,
        orders: OrderService,
        profiles: ProfileRepository,
        notifications: Optional[NotificationDispatcher] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.requests = requests
        self.pricing = pricing
        self.orders = orders
        self.profiles = profiles
        self.notifications = notifications
        self.clock = clock

    async def _target_title(self, target_type: PricingTarget, target_id: str) -> str:
        if target_type is PricingTarget.CONTENT:
            document = await self.store.get(Collections.CONTENT, target_id)
            return document["title"] if document else "Unknown Content"
        document = await self.store.get(Collections.CONTENT_BUNDLES, target_id)
        return document["name"] if document else "Unknown Bundle"

    @service_operation("create purchase request", log_level=logging.INFO)
    async def create_request(
        self,
        actor_id: Optional[str],
        target_type: Union[PricingTarget, str],
        target_id: str,
        message: Optional[str] = None,
    ) -> PurchaseRequest:
        """Ask permission to buy a priced content item or bundle.

        Raises:
            InvalidStateError: the target is not for sale
            DuplicateResourceError: a pending or unused approved request exists,
                or the actor already holds purchased access
        """
        await self.profiles.get_actor(actor_id)
        target_type = parse_enum(PricingTarget, target_type, "target_type")
        target_id = DocumentId.parse(target_id)

        if await self.pricing.get_active_pricing(target_type, target_id) is None:
            raise InvalidStateError("This content is not available for purchase")

        for existing in await self.requests.for_user_target(actor_id, target_type, target_id):
            if existing.is_pending:
                raise DuplicateResourceError("You already have a pending request for this content")
            if existing.is_usable:
                raise DuplicateResourceError(
                    "Your request has already been approved. You can now purchase this content."
                )

        if await self.orders.has_purchased_access(actor_id, target_type, target_id):
            raise DuplicateResourceError("You already have access to this content")

        request = await self.requests.insert(PurchaseRequest(
            user_id=actor_id,
            target_type=target_type,
            target_id=target_id,
            message=message.strip() if message and message.strip() else None,
            created_at=self.clock(),
        ))
        logger.info(f"Purchase request {request.id} by {actor_id} for {target_type.value} {target_id}")
        return request

    async def list_my_requests(self, actor_id: Optional[str]) -> List[PurchaseRequest]:
        await self.profiles.get_actor(actor_id)
        return await self.requests.query(user_id=actor_id)

    async def get_request_status(
        self,
        actor_id: Optional[str],
        target_type: Union[PricingTarget, str],
        target_id: str,
    ) -> Optional[PurchaseRequest]:
        """The actor's latest request for a target, or None."""
        await self.profiles.get_actor(actor_id)
        target_type = parse_enum(PricingTarget, target_type, "target_type")
        requests = await self.requests.for_user_target(actor_id, target_type, DocumentId.parse(target_id))
        return requests[0] if requests else None

    async def list_requests(
        self,
        actor_id: Optional[str],
        status: Optional[Union[PurchaseRequestStatus, str]] = None,
    ) -> List[PurchaseRequest]:
        actor = await self.profiles.get_actor(actor_id)
        require_permission(actor, Permission.VIEW_PURCHASE_REQUESTS)
        if status is None:
            return await self.requests.query()
        return await self.requests.query(status=parse_enum(PurchaseRequestStatus, status, "status").value)

    async def pending_count(self, actor_id: Optional[str]) -> int:
        return len(await self.list_requests(actor_id, PurchaseRequestStatus.PENDING))

    async def _review(
        self,
        actor_id: Optional[str],
        request_id: str,
        status: PurchaseRequestStatus,
        admin_notes: Optional[str],
    ) -> PurchaseRequest:
        actor = await self.profiles.get_actor(actor_id)
        require_permission(actor, Permission.MANAGE_PURCHASE_REQUESTS)
        request = await self.requests.get(request_id)
        if not request.is_pending:
            raise InvalidStateError("This request has already been reviewed")

        try:
            await self.store.patch(
                Collections.PURCHASE_REQUESTS,
                request.id,
                {
                    "status": status.value,
                    "admin_notes": admin_notes,
                    "reviewed_at": to_timestamp_ms(self.clock()),
                    "reviewed_by": actor_id,
                },
                expected={"status": PurchaseRequestStatus.PENDING.value},
            )
        except ConcurrentModificationError as e:
            raise InvalidStateError("This request has already been reviewed") from e
        logger.info(f"Purchase request {request.id} {status.value} by {actor_id}")

        if self.notifications is not None:
            requester = await self.profiles.get_by_user_id(request.user_id)
            if requester is not None:
                await self.notifications.notify_purchase_request_decision(
                    requester_email=requester.email,
                    requester_phone=requester.phone_number,
                    requester_name=requester.first_name or "there",
                    reviewer_name=actor.display_name if actor else "An administrator",
                    target_title=await self._target_title(request.target_type, request.target_id),
                    approved=status is PurchaseRequestStatus.APPROVED,
                    review_notes=admin_notes,
                )
        return await self.requests.get(request.id)

    @service_operation("approve purchase request", log_level=logging.INFO)
    async def approve_request(
        self,
        actor_id: Optional[str],
        request_id: str,
        admin_notes: Optional[str] = None,
    ) -> PurchaseRequest:
        return await self._review(actor_id, request_id, PurchaseRequestStatus.APPROVED, admin_notes)

    @service_operation("deny purchase request", log_level=logging.INFO)
    async def deny_request(
        self,
        actor_id: Optional[str],
        request_id: str,
        admin_notes: Optional[str] = None,
    ) -> PurchaseRequest:
        return await self._review(actor_id, request_id, PurchaseRequestStatus.DENIED, admin_notes)

    async def can_purchase(
        self,
        actor_id: Optional[str],
        target_type: Union[PricingTarget, str],
        target_id: str,
    ) -> PurchaseEligibility:
        """Explain whether the actor may open an order for the target right now."""
        if not actor_id:
            return PurchaseEligibility(False, "Not authenticated")
        target_type = parse_enum(PricingTarget, target_type, "target_type")
        target_id = DocumentId.parse(target_id)

        if await self.pricing.get_active_pricing(target_type, target_id) is None:
            return PurchaseEligibility(False, "Content is not available for purchase")
        if await self.orders.has_purchased_access(actor_id, target_type, target_id):
            return PurchaseEligibility(False, "You already have access to this content")

        requests = await self.requests.for_user_target(actor_id, target_type, target_id)
        usable = next((r for r in requests if r.is_usable), None)
        if usable is not None:
            return PurchaseEligibility(True, "Your request has been approved", "approved", usable.id)
        pending = next((r for r in requests if r.is_pending), None)
        if pending is not None:
            return PurchaseEligibility(False, "Your purchase request is pending approval", "pending", pending.id)
        if not self.orders.require_purchase_approval:
            return PurchaseEligibility(True, "Content is available for purchase")
        if any(r.purchase_completed_at is not None for r in requests):
            return PurchaseEligibility(False, "You have already completed this purchase", "completed")
        return PurchaseEligibility(False, "You need to request permission to purchase this content", "none")

    @service_operation("complete purchase request")
    async def mark_completed(self, actor_id: Optional[str], request_id: str) -> PurchaseRequest:
        """Use up an approved request outside the order flow.

        Raises:
            PermissionDeniedError: the request belongs to someone else
            InvalidStateError: the request is not approved or already used
        """
        await self.profiles.get_actor(actor_id)
        request = await self.requests.get(request_id)
        if request.user_id != actor_id:
            raise PermissionDeniedError("You can only complete your own purchase requests")
        if request.status is not PurchaseRequestStatus.APPROVED:
            raise InvalidStateError("Only approved requests can be marked as completed")
        await self.requests.consume(request, self.clock())
        return await self.requests.get(request.id)
