"""Purchase requests: buyers ask permission before ordering a priced target."""

from .entities import PurchaseRequest, PurchaseEligibility

__all__ = ["PurchaseRequest", "PurchaseEligibility"]
