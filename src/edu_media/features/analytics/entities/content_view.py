"""View records and the reports built from them."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from ....config.constants import ContentType
from ....utils.timezone import from_timestamp_ms, to_timestamp_ms


@dataclass
class ContentView:
    """One viewing session of a content item; ``time_spent`` is in seconds."""

    content_id: str
    session_id: str
    viewed_at: datetime
    user_id: Optional[str] = None
    time_spent: Optional[int] = None
    id: Optional[str] = None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "ContentView":
        return cls(
            id=doc.get("id"),
            content_id=doc["content_id"],
            session_id=doc["session_id"],
            viewed_at=from_timestamp_ms(doc["viewed_at"]),
            user_id=doc.get("user_id"),
            time_spent=doc.get("time_spent"),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "content_id": self.content_id,
            "session_id": self.session_id,
            "viewed_at": to_timestamp_ms(self.viewed_at),
            "user_id": self.user_id,
            "time_spent": self.time_spent,
        }


@dataclass
class ViewerStats:
    user_id: str
    user_name: str
    view_count: int = 0
    total_time_spent: int = 0
    last_viewed: Optional[datetime] = None


@dataclass
class ContentViewSummary:
    """Headline numbers for one content item."""

    content_id: str
    total_views: int = 0
    unique_sessions: int = 0
    unique_users: int = 0
    average_time_spent: int = 0
    content_title: Optional[str] = None
    content_type: Optional[ContentType] = None


@dataclass
class ContentAnalytics(ContentViewSummary):
    """Detailed report for one content item."""

    recent_views: int = 0
    viewers: List[ViewerStats] = field(default_factory=list)
