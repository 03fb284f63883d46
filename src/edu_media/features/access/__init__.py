"""Access feature: grants and the content visibility resolver.

- entities/: AccessGrant and resolution results
- repositories/: GrantRepository
- services/: AccessResolver, GrantService, PublicContentService
"""

from .entities import AccessGrant, AccessResolution, ShareEligibility, ContentView, NO_PERMISSION

__all__ = ["AccessGrant", "AccessResolution", "ShareEligibility", "ContentView", "NO_PERMISSION"]
