"""Purchase orders."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Mapping, Optional

from ....config.constants import MOCK_PAYMENT_METHOD, OrderStatus, PricingTarget
from ....utils.timezone import ensure_utc, from_timestamp_ms, to_timestamp_ms


@dataclass
class Order:
    """A buyer's purchase of one priced content item or bundle."""

    user_id: str
    target_type: PricingTarget
    target_id: str
    pricing_id: str
    amount: int
    currency: str
    status: OrderStatus = OrderStatus.PENDING
    payment_method: str = MOCK_PAYMENT_METHOD
    access_duration: Optional[timedelta] = None
    access_expires_at: Optional[datetime] = None
    grant_id: Optional[str] = None
    purchase_request_id: Optional[str] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None
    refunded_by: Optional[str] = None
    id: Optional[str] = None

    def __post_init__(self):
        self.target_type = PricingTarget(self.target_type)
        self.status = OrderStatus(self.status)

    def grants_access_at(self, now: datetime) -> bool:
        """A completed order grants access until its expiry, if it has one."""
        if self.status is not OrderStatus.COMPLETED:
            return False
        return self.access_expires_at is None or ensure_utc(self.access_expires_at) > now

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "Order":
        duration_ms = doc.get("access_duration_ms")
        return cls(
            id=doc.get("id"),
            user_id=doc["user_id"],
            target_type=doc["target_type"],
            target_id=doc["target_id"],
            pricing_id=doc["pricing_id"],
            amount=doc["amount"],
            currency=doc["currency"],
            status=doc.get("status", OrderStatus.PENDING.value),
            payment_method=doc.get("payment_method", MOCK_PAYMENT_METHOD),
            access_duration=timedelta(milliseconds=duration_ms) if duration_ms is not None else None,
            access_expires_at=from_timestamp_ms(doc.get("access_expires_at")),
            grant_id=doc.get("grant_id"),
            purchase_request_id=doc.get("purchase_request_id"),
            created_at=from_timestamp_ms(doc.get("created_at")),
            completed_at=from_timestamp_ms(doc.get("completed_at")),
            refunded_at=from_timestamp_ms(doc.get("refunded_at")),
            refunded_by=doc.get("refunded_by"),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "target_type": self.target_type.value,
            "target_id": self.target_id,
            "pricing_id": self.pricing_id,
            "amount": self.amount,
            "currency": self.currency,
            "status": self.status.value,
            "payment_method": self.payment_method,
            "access_duration_ms": (
                int(self.access_duration.total_seconds() * 1000) if self.access_duration is not None else None
            ),
            "access_expires_at": to_timestamp_ms(self.access_expires_at),
            "grant_id": self.grant_id,
            "purchase_request_id": self.purchase_request_id,
            "created_at": to_timestamp_ms(self.created_at),
            "completed_at": to_timestamp_ms(self.completed_at),
            "refunded_at": to_timestamp_ms(self.refunded_at),
            "refunded_by": self.refunded_by,
        }
