"""Content version snapshot entity."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Mapping, NamedTuple, Optional

from ....utils.timezone import from_timestamp_ms, to_timestamp_ms
from ...content.entities.content_item import VERSIONED_FIELDS


@dataclass(frozen=True)
class ContentVersion:
    """Immutable copy of a content item's versioned fields."""

    content_id: str
    version_number: int
    created_by: str
    created_at: datetime
    values: Dict[str, Any] = field(default_factory=dict)
    change_description: Optional[str] = None
    id: Optional[str] = None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "ContentVersion":
        return cls(
            id=doc.get("id"),
            content_id=doc["content_id"],
            version_number=doc["version_number"],
            created_by=doc["created_by"],
            created_at=from_timestamp_ms(doc["created_at"]),
            change_description=doc.get("change_description"),
            values={name: doc.get(name) for name in VERSIONED_FIELDS},
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            **{name: self.values.get(name) for name in VERSIONED_FIELDS},
            "content_id": self.content_id,
            "version_number": self.version_number,
            "created_by": self.created_by,
            "created_at": to_timestamp_ms(self.created_at),
            "change_description": self.change_description,
        }


class RevertResult(NamedTuple):
    """Version numbers written by a revert."""

    pre_revert_version: int
    version_number: int
