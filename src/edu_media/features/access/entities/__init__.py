"""Access entities."""

from .access_grant import AccessGrant
from .resolution import AccessResolution, ShareEligibility, ContentView, NO_PERMISSION

__all__ = ["AccessGrant", "AccessResolution", "ShareEligibility", "ContentView", "NO_PERMISSION"]
