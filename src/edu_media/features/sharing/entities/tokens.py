"""Token-bearing records: staff invite codes, client invites and content shares."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from ....config.constants import UserRole
from ....utils.timezone import from_timestamp_ms, is_expired, to_timestamp_ms


@dataclass
class InviteCode:
    """Reusable staff invite code for one role.

    Stays usable until deactivated or past its expiry.
    """

    code: str
    role: UserRole
    created_by: str
    is_active: bool = True
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    id: Optional[str] = None

    def __post_init__(self):
        self.role = UserRole(self.role)

    def is_expired_at(self, now: datetime) -> bool:
        return is_expired(self.expires_at, now)

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "InviteCode":
        return cls(
            id=doc.get("id"),
            code=doc["code"],
            role=doc["role"],
            created_by=doc["created_by"],
            is_active=doc.get("is_active", False),
            expires_at=from_timestamp_ms(doc.get("expires_at")),
            created_at=from_timestamp_ms(doc.get("created_at")),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "role": self.role.value,
            "created_by": self.created_by,
            "is_active": self.is_active,
            "expires_at": to_timestamp_ms(self.expires_at),
            "created_at": to_timestamp_ms(self.created_at),
        }


@dataclass
class ClientInvite:
    """Single-use invite for an external client, parent or professional."""

    code: str
    role: UserRole
    created_by: str
    email: Optional[str] = None
    phone_number: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    message: Optional[str] = None
    is_active: bool = True
    email_sent: bool = False
    sms_sent: bool = False
    expires_at: Optional[datetime] = None
    used_by: Optional[str] = None
    used_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    id: Optional[str] = None

    def __post_init__(self):
        self.role = UserRole(self.role)

    @property
    def is_used(self) -> bool:
        return self.used_by is not None

    def is_expired_at(self, now: datetime) -> bool:
        return is_expired(self.expires_at, now)

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "ClientInvite":
        return cls(
            id=doc.get("id"),
            code=doc["code"],
            role=doc["role"],
            created_by=doc["created_by"],
            email=doc.get("email"),
            phone_number=doc.get("phone_number"),
            first_name=doc.get("first_name"),
            last_name=doc.get("last_name"),
            message=doc.get("message"),
            is_active=doc.get("is_active", False),
            email_sent=doc.get("email_sent", False),
            sms_sent=doc.get("sms_sent", False),
            expires_at=from_timestamp_ms(doc.get("expires_at")),
            used_by=doc.get("used_by"),
            used_at=from_timestamp_ms(doc.get("used_at")),
            created_at=from_timestamp_ms(doc.get("created_at")),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "role": self.role.value,
            "created_by": self.created_by,
            "email": self.email,
            "phone_number": self.phone_number,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "message": self.message,
            "is_active": self.is_active,
            "email_sent": self.email_sent,
            "sms_sent": self.sms_sent,
            "expires_at": to_timestamp_ms(self.expires_at),
            "used_by": self.used_by,
            "used_at": to_timestamp_ms(self.used_at),
            "created_at": to_timestamp_ms(self.created_at),
        }


@dataclass
class ContentShare:
    """Third-party link to one content item.

    Expiry ends the link's validity; the record is kept for audit.
    """

    content_id: str
    shared_by: str
    access_token: str
    recipient_email: Optional[str] = None
    recipient_name: Optional[str] = None
    message: Optional[str] = None
    expires_at: Optional[datetime] = None
    view_count: int = 0
    last_viewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    id: Optional[str] = None

    def is_expired_at(self, now: datetime) -> bool:
        return is_expired(self.expires_at, now)

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "ContentShare":
        return cls(
            id=doc.get("id"),
            content_id=doc["content_id"],
            shared_by=doc["shared_by"],
            access_token=doc["access_token"],
            recipient_email=doc.get("recipient_email"),
            recipient_name=doc.get("recipient_name"),
            message=doc.get("message"),
            expires_at=from_timestamp_ms(doc.get("expires_at")),
            view_count=doc.get("view_count", 0),
            last_viewed_at=from_timestamp_ms(doc.get("last_viewed_at")),
            created_at=from_timestamp_ms(doc.get("created_at")),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "content_id": self.content_id,
            "shared_by": self.shared_by,
            "access_token": self.access_token,
            "recipient_email": self.recipient_email,
            "recipient_name": self.recipient_name,
            "message": self.message,
            "expires_at": to_timestamp_ms(self.expires_at),
            "view_count": self.view_count,
            "last_viewed_at": to_timestamp_ms(self.last_viewed_at),
            "created_at": to_timestamp_ms(self.created_at),
        }


@dataclass(frozen=True)
class CodeValidation:
    """Outcome of checking an invite code before sign-up."""

    valid: bool
    message: Optional[str] = None
    role: Optional[UserRole] = None


@dataclass(frozen=True)
class SharedContentView:
    """What a share link resolves to: the decision and, if allowed, the content."""

    resolution: Any
    content: Optional[Dict[str, Any]] = None
    shared_by_name: Optional[str] = None
    message: Optional[str] = None
    expires_at: Optional[datetime] = None
