"""Content bundle entities."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from ....core.exceptions import ValidationError
from ....utils.timezone import from_timestamp_ms, to_timestamp_ms


@dataclass
class BundleItem:
    """Membership of one content item in a bundle."""

    bundle_id: str
    content_id: str
    added_by: str
    order: Optional[int] = None
    added_at: Optional[datetime] = None
    id: Optional[str] = None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "BundleItem":
        return cls(
            id=doc.get("id"),
            bundle_id=doc["bundle_id"],
            content_id=doc["content_id"],
            added_by=doc["added_by"],
            order=doc.get("order"),
            added_at=from_timestamp_ms(doc.get("added_at")),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "bundle_id": self.bundle_id,
            "content_id": self.content_id,
            "added_by": self.added_by,
            "order": self.order,
            "added_at": to_timestamp_ms(self.added_at),
        }

    @property
    def sort_key(self):
        """Ordered items first by position, unordered ones after in insertion order."""
        return (self.order is None, self.order or 0, to_timestamp_ms(self.added_at) or 0)


@dataclass
class ContentBundle:
    """Named, ordered collection of content items.

    A bundle carries its own grants and pricing, independent of its members.
    Inactive bundles keep their items but confer no access.
    """

    name: str
    created_by: str
    description: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    id: Optional[str] = None
    items: List[BundleItem] = field(default_factory=list)

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValidationError("Bundle name is required", field="name")
        self.name = self.name.strip()

    @property
    def content_ids(self) -> List[str]:
        return [item.content_id for item in self.items]

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "ContentBundle":
        return cls(
            id=doc.get("id"),
            name=doc["name"],
            description=doc.get("description"),
            created_by=doc["created_by"],
            is_active=doc.get("is_active", True),
            created_at=from_timestamp_ms(doc.get("created_at")),
            updated_at=from_timestamp_ms(doc.get("updated_at")),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "created_by": self.created_by,
            "is_active": self.is_active,
            "created_at": to_timestamp_ms(self.created_at),
            "updated_at": to_timestamp_ms(self.updated_at),
        }
