"""Commerce entities."""

from .pricing import Pricing
from .order import Order

__all__ = ["Pricing", "Order"]
