"""Commerce feature: pricing records, orders and purchase-minted grants."""

from .entities import Pricing, Order

__all__ = ["Pricing", "Order"]
