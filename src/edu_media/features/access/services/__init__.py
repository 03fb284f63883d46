"""Access services."""

from .access_resolver import AccessResolver, RequesterContext, gate_failure
from .grant_service import GrantService
from .public_content_service import PublicContentService

__all__ = ["AccessResolver", "RequesterContext", "gate_failure", "GrantService", "PublicContentService"]
