"""Results of access resolution."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ....config.constants import AccessPath


NO_PERMISSION = "no permission"


@dataclass(frozen=True)
class AccessResolution:
    """Outcome of resolving one requester's access to one content item.

    A denial is a normal outcome, never an exception. ``requires_password``
    and ``requires_auth`` tell the caller which prompt to show.
    """

    allowed: bool
    requires_password: bool = False
    requires_auth: bool = False
    reason: Optional[str] = None
    path: Optional[AccessPath] = None
    grant_id: Optional[str] = None

    @classmethod
    def allow(cls, path: AccessPath, grant_id: Optional[str] = None) -> "AccessResolution":
        return cls(allowed=True, path=path, grant_id=grant_id)

    @classmethod
    def deny(cls, reason: str = NO_PERMISSION, **flags: bool) -> "AccessResolution":
        return cls(allowed=False, reason=reason, **flags)


@dataclass(frozen=True)
class ShareEligibility:
    """Whether a user may mint a third-party share link for a content item."""

    allowed: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class ContentView:
    """What the public viewing path returns: the decision and, if allowed, the content."""

    resolution: AccessResolution
    content: Optional[Dict[str, Any]] = None
