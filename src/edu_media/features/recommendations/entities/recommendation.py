"""Content recommendation records."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from ....utils.timezone import from_timestamp_ms, to_timestamp_ms
from ...content.entities.content_item import ContentItem


@dataclass
class ContentRecommendation:
    """One content item recommended to one email address."""

    content_id: str
    recommended_by: str
    recipient_email: str
    recipient_user_id: Optional[str] = None
    message: Optional[str] = None
    viewed_at: Optional[datetime] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    id: Optional[str] = None

    def is_addressed_to(self, user_id: str, email: Optional[str]) -> bool:
        if self.recipient_user_id is not None and self.recipient_user_id == user_id:
            return True
        return email is not None and self.recipient_email == email

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "ContentRecommendation":
        return cls(
            id=doc.get("id"),
            content_id=doc["content_id"],
            recommended_by=doc["recommended_by"],
            recipient_email=doc["recipient_email"],
            recipient_user_id=doc.get("recipient_user_id"),
            message=doc.get("message"),
            viewed_at=from_timestamp_ms(doc.get("viewed_at")),
            is_active=doc.get("is_active", True),
            created_at=from_timestamp_ms(doc.get("created_at")),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "content_id": self.content_id,
            "recommended_by": self.recommended_by,
            "recipient_email": self.recipient_email,
            "recipient_user_id": self.recipient_user_id,
            "message": self.message,
            "viewed_at": to_timestamp_ms(self.viewed_at),
            "is_active": self.is_active,
            "created_at": to_timestamp_ms(self.created_at),
        }


@dataclass
class RecommendedContent:
    """A recommendation as its recipient sees it."""

    recommendation: ContentRecommendation
    content: ContentItem
    recommender_name: str
    has_purchased: bool = False
