"""Access grant entity."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from ....config.constants import PricingTarget, UserRole
from ....core.exceptions import ValidationError
from ....utils.timezone import ensure_utc, from_timestamp_ms, to_timestamp_ms


@dataclass
class AccessGrant:
    """Permission for one user, role or user group to view a content item or bundle.

    Expired grants are kept; they simply stop matching.
    """

    target_type: PricingTarget
    target_id: str
    granted_by: str
    user_id: Optional[str] = None
    role: Optional[UserRole] = None
    user_group_id: Optional[str] = None
    expires_at: Optional[datetime] = None
    can_share: bool = False
    created_at: Optional[datetime] = None
    id: Optional[str] = None

    def __post_init__(self):
        self.target_type = PricingTarget(self.target_type)
        if self.role is not None and not isinstance(self.role, UserRole):
            self.role = UserRole(self.role)
        targets = [t for t in (self.user_id, self.role, self.user_group_id) if t is not None]
        if len(targets) != 1:
            raise ValidationError("A grant must target exactly one of user, role or group")

    @property
    def target_key(self) -> str:
        """Document field naming the content item or bundle."""
        return "content_id" if self.target_type is PricingTarget.CONTENT else "bundle_id"

    def is_valid_at(self, now: datetime) -> bool:
        """A grant is valid while it has no expiry or its expiry is strictly in the future."""
        return self.expires_at is None or ensure_utc(self.expires_at) > now

    @classmethod
    def from_document(cls, doc: Mapping[str, Any], target_type: PricingTarget) -> "AccessGrant":
        target_key = "content_id" if PricingTarget(target_type) is PricingTarget.CONTENT else "bundle_id"
        return cls(
            id=doc.get("id"),
            target_type=target_type,
            target_id=doc[target_key],
            granted_by=doc["granted_by"],
            user_id=doc.get("user_id"),
            role=doc.get("role"),
            user_group_id=doc.get("user_group_id"),
            expires_at=from_timestamp_ms(doc.get("expires_at")),
            can_share=bool(doc.get("can_share", False)),
            created_at=from_timestamp_ms(doc.get("created_at")),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            self.target_key: self.target_id,
            "user_id": self.user_id,
            "role": self.role.value if self.role else None,
            "user_group_id": self.user_group_id,
            "expires_at": to_timestamp_ms(self.expires_at),
            "can_share": self.can_share,
            "granted_by": self.granted_by,
            "created_at": to_timestamp_ms(self.created_at),
        }
