"""Commerce services."""

from .pricing_service import PricingService
from .order_service import OrderService, SalesSummary, TargetSales

__all__ = ["PricingService", "OrderService", "SalesSummary", "TargetSales"]
