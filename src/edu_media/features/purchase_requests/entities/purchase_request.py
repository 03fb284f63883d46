"""Purchase request records."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from ....config.constants import PricingTarget, PurchaseRequestStatus
from ....utils.timezone import from_timestamp_ms, to_timestamp_ms


@dataclass
class PurchaseRequest:
    """A buyer's request to purchase one content item or bundle.

    An approved request is consumed by the first order completed against it;
    ``purchase_completed_at`` marks that.
    """

    user_id: str
    target_type: PricingTarget
    target_id: str
    status: PurchaseRequestStatus = PurchaseRequestStatus.PENDING
    message: Optional[str] = None
    admin_notes: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    purchase_completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    id: Optional[str] = None

    def __post_init__(self):
        self.target_type = PricingTarget(self.target_type)
        self.status = PurchaseRequestStatus(self.status)

    @property
    def is_pending(self) -> bool:
        return self.status is PurchaseRequestStatus.PENDING

    @property
    def is_usable(self) -> bool:
        """Approved and not yet used for a purchase."""
        return self.status is PurchaseRequestStatus.APPROVED and self.purchase_completed_at is None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "PurchaseRequest":
        return cls(
            id=doc.get("id"),
            user_id=doc["user_id"],
            target_type=doc["target_type"],
            target_id=doc["target_id"],
            status=doc.get("status", PurchaseRequestStatus.PENDING.value),
            message=doc.get("message"),
            admin_notes=doc.get("admin_notes"),
            reviewed_at=from_timestamp_ms(doc.get("reviewed_at")),
            reviewed_by=doc.get("reviewed_by"),
            purchase_completed_at=from_timestamp_ms(doc.get("purchase_completed_at")),
            created_at=from_timestamp_ms(doc.get("created_at")),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "target_type": self.target_type.value,
            "target_id": self.target_id,
            "status": self.status.value,
            "message": self.message,
            "admin_notes": self.admin_notes,
            "reviewed_at": to_timestamp_ms(self.reviewed_at),
            "reviewed_by": self.reviewed_by,
            "purchase_completed_at": to_timestamp_ms(self.purchase_completed_at),
            "created_at": to_timestamp_ms(self.created_at),
        }


@dataclass(frozen=True)
class PurchaseEligibility:
    """Whether a user may open an order for a target, and why."""

    can_purchase: bool
    reason: str
    request_status: Optional[str] = None
    request_id: Optional[str] = None
