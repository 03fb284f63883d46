"""Purchase request services."""

from .purchase_request_service import PurchaseRequestService

__all__ = ["PurchaseRequestService"]
