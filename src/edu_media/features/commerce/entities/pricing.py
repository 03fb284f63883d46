"""Pricing records."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Mapping, Optional

from ....config.constants import PricingTarget
from ....core.exceptions import ValidationError
from ....utils.timezone import from_timestamp_ms, to_timestamp_ms


@dataclass
class Pricing:
    """Price of a content item or bundle.

    ``price`` is in minor currency units (1999 is 19.99). A missing
    ``access_duration`` means purchases never expire. Superseded records are
    deactivated, never deleted.
    """

    target_type: PricingTarget
    target_id: str
    price: int
    currency: str
    created_by: str
    access_duration: Optional[timedelta] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    deactivated_at: Optional[datetime] = None
    id: Optional[str] = None

    def __post_init__(self):
        self.target_type = PricingTarget(self.target_type)
        if isinstance(self.price, bool) or not isinstance(self.price, int) or self.price < 0:
            raise ValidationError("Price must be a non-negative integer amount of minor units", field="price")
        if not self.currency or len(self.currency.strip()) != 3 or not self.currency.strip().isalpha():
            raise ValidationError("Currency must be a three-letter code", field="currency")
        self.currency = self.currency.strip().upper()
        if self.access_duration is not None and self.access_duration <= timedelta(0):
            raise ValidationError("Access duration must be positive", field="access_duration")

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "Pricing":
        duration_ms = doc.get("access_duration_ms")
        return cls(
            id=doc.get("id"),
            target_type=doc["target_type"],
            target_id=doc["target_id"],
            price=doc["price"],
            currency=doc["currency"],
            created_by=doc["created_by"],
            access_duration=timedelta(milliseconds=duration_ms) if duration_ms is not None else None,
            is_active=doc.get("is_active", False),
            created_at=from_timestamp_ms(doc.get("created_at")),
            deactivated_at=from_timestamp_ms(doc.get("deactivated_at")),
        )

    def to_document(self) -> Dict[str, Any]:
        duration_ms = None
        if self.access_duration is not None:
            duration_ms = int(self.access_duration.total_seconds() * 1000)
        return {
            "target_type": self.target_type.value,
            "target_id": self.target_id,
            "price": self.price,
            "currency": self.currency,
            "access_duration_ms": duration_ms,
            "is_active": self.is_active,
            "created_by": self.created_by,
            "created_at": to_timestamp_ms(self.created_at),
            "deactivated_at": to_timestamp_ms(self.deactivated_at),
        }
