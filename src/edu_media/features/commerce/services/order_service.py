"""Orders and purchase-based access.

Payment is mocked: completing an order stands in for a successful charge.
Completion is the only path that turns a purchase into an access grant.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Union

from ....config.constants import Collections, OrderStatus, PricingTarget
from ....core.exceptions import (
    ConcurrentModificationError,
    DuplicateResourceError,
    EntityNotFoundError,
    InvalidStateError,
    PermissionDeniedError,
)
from ....core.value_objects import OrderId
from ....protocols import DocumentStore
from ....utils.error_handling import service_operation
from ....utils.timezone import to_timestamp_ms, utc_now
from ....utils.validation import parse_enum
from ...access.entities.access_grant import AccessGrant
from ...access.repositories.grant_repository import GrantRepository
from ...permissions import Permission, require_permission
from ...purchase_requests.repositories.purchase_request_repository import PurchaseRequestRepository
from ...users.repositories.profile_repository import ProfileRepository
from ..entities.order import Order
from .pricing_service import PricingService

logger = logging.getLogger(__name__)


@dataclass
class TargetSales:
    target_type: PricingTarget
    target_id: str
    count: int = 0
    revenue: int = 0


@dataclass
class SalesSummary:
    """Revenue of completed orders, per currency, in minor units."""

    completed_orders: int = 0
    total_revenue: Dict[str, int] = field(default_factory=dict)
    last_day_revenue: Dict[str, int] = field(default_factory=dict)
    last_week_revenue: Dict[str, int] = field(default_factory=dict)
    last_month_revenue: Dict[str, int] = field(default_factory=dict)
    top_sellers: List[TargetSales] = field(default_factory=list)


class OrderService:
    """Creates, completes, fails and refunds orders."""

    def __init__(
        self,
        store: DocumentStore,
        pricing: PricingService,
        grants: GrantRepository,
        profiles: ProfileRepository,
        purchase_requests: Optional[PurchaseRequestRepository] = None,
        require_purchase_approval: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.pricing = pricing
        self.grants = grants
        self.profiles = profiles
        self.purchase_requests = purchase_requests
        self.require_purchase_approval = require_purchase_approval
        self.clock = clock
        if require_purchase_approval and purchase_requests is None:
            raise ValueError("require_purchase_approval needs a purchase request repository")

    async def get_order(self, order_id: str) -> Order:
        document = await self.store.get(Collections.ORDERS, OrderId.parse(order_id))
        if document is None:
            raise EntityNotFoundError("Order", order_id)
        return Order.from_document(document)

    async def _orders(self, **filters) -> List[Order]:
        documents = await self.store.query(Collections.ORDERS, filters or None)
        orders = [Order.from_document(doc) for doc in documents]
        return sorted(orders, key=lambda o: to_timestamp_ms(o.created_at) or 0, reverse=True)

    async def has_purchased_access(
        self,
        user_id: str,
        target_type: PricingTarget,
        target_id: str,
        now: Optional[datetime] = None,
    ) -> bool:
        """Whether the user holds a completed, unexpired order for the target."""
        now = now or self.clock()
        orders = await self._orders(
            user_id=user_id,
            target_type=PricingTarget(target_type).value,
            target_id=target_id,
            status=OrderStatus.COMPLETED.value,
        )
        return any(order.grants_access_at(now) for order in orders)

    @service_operation("create order", log_level=logging.INFO)
    async def create_order(self, actor_id: Optional[str], pricing_id: str) -> Order:
        """Open a pending order against the current pricing of a target.

        When purchases need approval, the buyer must hold an approved,
        unused purchase request for the target; the order records it.

        Raises:
            InvalidStateError: the pricing is unknown or no longer active
            DuplicateResourceError: the buyer already holds unexpired access
            PermissionDeniedError: approval is required and the buyer has none
        """
        await self.profiles.get_actor(actor_id)
        try:
            pricing = await self.pricing.get_pricing(pricing_id)
        except EntityNotFoundError as e:
            raise InvalidStateError("Pricing not found or inactive") from e
        if not pricing.is_active:
            raise InvalidStateError("Pricing not found or inactive")

        if await self.has_purchased_access(actor_id, pricing.target_type, pricing.target_id):
            raise DuplicateResourceError("You already have access to this content")

        request_id = None
        if self.require_purchase_approval:
            request = await self.purchase_requests.find_usable(actor_id, pricing.target_type, pricing.target_id)
            if request is None:
                raise PermissionDeniedError("You need an approved purchase request to buy this content")
            request_id = request.id

        order = Order(
            user_id=actor_id,
            target_type=pricing.target_type,
            target_id=pricing.target_id,
            pricing_id=pricing.id,
            amount=pricing.price,
            currency=pricing.currency,
            access_duration=pricing.access_duration,
            purchase_request_id=request_id,
            created_at=self.clock(),
        )
        order.id = await self.store.insert(Collections.ORDERS, order.to_document())
        logger.info(f"Order {order.id} opened by {actor_id} for {order.target_type.value} {order.target_id}")
        return order

    async def _claim_pending(self, order: Order, fields: Dict) -> None:
        if order.status is not OrderStatus.PENDING:
            raise InvalidStateError("Order already processed")
        try:
            await self.store.patch(
                Collections.ORDERS, order.id, fields, expected={"status": OrderStatus.PENDING.value}
            )
        except ConcurrentModificationError as e:
            raise InvalidStateError("Order already processed") from e

    @service_operation("complete order", log_level=logging.INFO)
    async def complete_order(self, actor_id: Optional[str], order_id: str) -> Order:
        """Mark a pending order paid and mint the buyer's access grant.

        The grant expires ``access_duration`` after completion, or never. An
        order opened on an approved purchase request uses that request up.
        """
        await self.profiles.get_actor(actor_id)
        order = await self.get_order(order_id)
        if order.user_id != actor_id:
            raise PermissionDeniedError("Not authorized")

        completed_at = self.clock()
        access_expires_at = None
        if order.access_duration is not None:
            access_expires_at = completed_at + order.access_duration
        consumed = None
        if order.purchase_request_id and self.purchase_requests is not None:
            if order.status is not OrderStatus.PENDING:
                raise InvalidStateError("Order already processed")
            consumed = await self.purchase_requests.get(order.purchase_request_id)
            await self.purchase_requests.consume(consumed, completed_at)
        try:
            await self._claim_pending(order, {
                "status": OrderStatus.COMPLETED.value,
                "completed_at": to_timestamp_ms(completed_at),
                "access_expires_at": to_timestamp_ms(access_expires_at),
            })
        except InvalidStateError:
            if consumed is not None:
                await self.purchase_requests.release(consumed.id)
            raise

        grant = await self.grants.insert(AccessGrant(
            target_type=order.target_type,
            target_id=order.target_id,
            granted_by=order.user_id,
            user_id=order.user_id,
            expires_at=access_expires_at,
            can_share=False,
            created_at=completed_at,
        ))
        await self.store.patch(Collections.ORDERS, order.id, {"grant_id": grant.id})
        logger.info(f"Order {order.id} completed; grant {grant.id} expires {access_expires_at or 'never'}")
        return await self.get_order(order.id)

    @service_operation("fail order")
    async def fail_order(self, actor_id: Optional[str], order_id: str) -> Order:
        """Record a failed payment; the buyer or an order manager may do this."""
        actor = await self.profiles.get_actor(actor_id)
        order = await self.get_order(order_id)
        if order.user_id != actor_id:
            require_permission(actor, Permission.MANAGE_ORDERS)
        await self._claim_pending(order, {"status": OrderStatus.FAILED.value})
        return await self.get_order(order.id)

    @service_operation("refund order", log_level=logging.INFO)
    async def refund_order(self, actor_id: Optional[str], order_id: str) -> Order:
        """Refund a completed order and make its grant inert.

        The grant is expired rather than deleted so the audit trail survives.
        """
        actor = await self.profiles.get_actor(actor_id)
        require_permission(actor, Permission.MANAGE_ORDERS)
        order = await self.get_order(order_id)
        if order.status is not OrderStatus.COMPLETED:
            raise InvalidStateError(f"Only completed orders can be refunded (order is {order.status.value})")

        now = self.clock()
        try:
            await self.store.patch(
                Collections.ORDERS,
                order.id,
                {
                    "status": OrderStatus.REFUNDED.value,
                    "refunded_at": to_timestamp_ms(now),
                    "refunded_by": actor_id,
                },
                expected={"status": OrderStatus.COMPLETED.value},
            )
        except ConcurrentModificationError as e:
            raise InvalidStateError("Order already refunded") from e

        if order.grant_id:
            await self.grants.expire(order.target_type, order.grant_id, now)
        logger.info(f"Order {order.id} refunded by {actor_id}")
        return await self.get_order(order.id)

    async def list_user_orders(self, actor_id: Optional[str]) -> List[Order]:
        """The actor's own orders, newest first."""
        await self.profiles.get_actor(actor_id)
        return await self._orders(user_id=actor_id)

    async def list_all_orders(
        self,
        actor_id: Optional[str],
        status: Optional[Union[OrderStatus, str]] = None,
    ) -> List[Order]:
        actor = await self.profiles.get_actor(actor_id)
        require_permission(actor, Permission.VIEW_ORDERS)
        if status is None:
            return await self._orders()
        return await self._orders(status=parse_enum(OrderStatus, status, "status").value)

    async def sales_summary(self, actor_id: Optional[str], top: int = 10) -> SalesSummary:
        actor = await self.profiles.get_actor(actor_id)
        require_permission(actor, Permission.VIEW_ANALYTICS)

        now = self.clock()
        windows = (
            ("last_day_revenue", now - timedelta(days=1)),
            ("last_week_revenue", now - timedelta(days=7)),
            ("last_month_revenue", now - timedelta(days=30)),
        )
        summary = SalesSummary()
        sellers: Dict[tuple, TargetSales] = {}
        totals = defaultdict(lambda: defaultdict(int))

        for order in await self._orders(status=OrderStatus.COMPLETED.value):
            summary.completed_orders += 1
            totals["total_revenue"][order.currency] += order.amount
            for name, since in windows:
                if order.completed_at is not None and order.completed_at >= since:
                    totals[name][order.currency] += order.amount
            key = (order.target_type, order.target_id)
            seller = sellers.setdefault(key, TargetSales(order.target_type, order.target_id))
            seller.count += 1
            seller.revenue += order.amount

        summary.total_revenue = dict(totals["total_revenue"])
        for name, _ in windows:
            setattr(summary, name, dict(totals[name]))
        summary.top_sellers = sorted(sellers.values(), key=lambda s: s.revenue, reverse=True)[:top]
        return summary

