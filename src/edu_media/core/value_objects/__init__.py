"""Value objects for edu-media-commons."""

from .identifiers import (
    DocumentId,
    UserId,
    ContentId,
    BundleId,
    GroupId,
    OrderId,
    PurchaseRequestId,
    RecommendationId,
)

__all__ = [
    "DocumentId",
    "UserId",
    "ContentId",
    "BundleId",
    "GroupId",
    "OrderId",
    "PurchaseRequestId",
    "RecommendationId",
]
