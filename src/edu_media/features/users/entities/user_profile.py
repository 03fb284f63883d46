"""User profile and user group entities."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from ....config.constants import UserRole
from ....core.exceptions import ValidationError
from ....utils.timezone import from_timestamp_ms, to_timestamp_ms


@dataclass
class UserProfile:
    """Role and permission overrides attached to an identity."""

    user_id: str
    role: UserRole
    permissions: Optional[List[str]] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    is_active: bool = True
    invited_by: Optional[str] = None
    invite_accepted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    id: Optional[str] = None

    def __post_init__(self):
        if not self.user_id:
            raise ValidationError("user_id is required", field="user_id")
        if not isinstance(self.role, UserRole):
            try:
                self.role = UserRole(self.role)
            except ValueError:
                raise ValidationError(f"Unknown role: {self.role}", field="role")

    @property
    def is_owner(self) -> bool:
        return self.role is UserRole.OWNER

    @property
    def display_name(self) -> str:
        name = " ".join(p for p in (self.first_name, self.last_name) if p)
        return name or self.email or self.user_id

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "UserProfile":
        return cls(
            id=doc.get("id"),
            user_id=doc["user_id"],
            role=doc["role"],
            permissions=list(doc["permissions"]) if doc.get("permissions") else None,
            first_name=doc.get("first_name"),
            last_name=doc.get("last_name"),
            email=doc.get("email"),
            phone_number=doc.get("phone_number"),
            is_active=doc.get("is_active", True),
            invited_by=doc.get("invited_by"),
            invite_accepted_at=from_timestamp_ms(doc.get("invite_accepted_at")),
            created_at=from_timestamp_ms(doc.get("created_at")),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "role": self.role.value,
            "permissions": list(self.permissions) if self.permissions else None,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "phone_number": self.phone_number,
            "is_active": self.is_active,
            "invited_by": self.invited_by,
            "invite_accepted_at": to_timestamp_ms(self.invite_accepted_at),
            "created_at": to_timestamp_ms(self.created_at),
        }


@dataclass
class UserGroup:
    """Named set of users that access grants can target."""

    name: str
    created_by: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    id: Optional[str] = None
    member_ids: List[str] = field(default_factory=list)

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValidationError("Group name is required", field="name")

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "UserGroup":
        return cls(
            id=doc.get("id"),
            name=doc["name"],
            description=doc.get("description"),
            created_by=doc["created_by"],
            created_at=from_timestamp_ms(doc.get("created_at")),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "created_by": self.created_by,
            "created_at": to_timestamp_ms(self.created_at),
        }
