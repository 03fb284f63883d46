"""Purchase request entities."""

from .purchase_request import PurchaseRequest, PurchaseEligibility

__all__ = ["PurchaseRequest", "PurchaseEligibility"]
