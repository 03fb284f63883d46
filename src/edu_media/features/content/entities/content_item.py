"""Content item entity."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from ....config.constants import ContentStatus, ContentType
from ....core.exceptions import ValidationError
from ....utils.timezone import ensure_utc, from_timestamp_ms, to_timestamp_ms


# Fields copied into every version snapshot and restored on revert
VERSIONED_FIELDS = (
    "title",
    "description",
    "type",
    "file_ref",
    "external_url",
    "rich_text_content",
    "body",
    "thumbnail_ref",
    "is_public",
    "tags",
    "active",
    "start_date",
    "end_date",
    "status",
)

_DATETIME_FIELDS = (
    "start_date",
    "end_date",
    "created_at",
    "updated_at",
    "submitted_for_review_at",
    "reviewed_at",
    "published_at",
    "archived_at",
)


@dataclass
class ContentItem:
    """A piece of educational media moving through the editorial workflow."""

    title: str
    type: ContentType
    created_by: str
    status: ContentStatus = ContentStatus.DRAFT
    current_version: int = 0
    description: Optional[str] = None
    file_ref: Optional[str] = None
    external_url: Optional[str] = None
    rich_text_content: Optional[str] = None
    body: Optional[str] = None
    thumbnail_ref: Optional[str] = None
    is_public: bool = False
    tags: List[str] = field(default_factory=list)
    active: bool = True
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    password: Optional[str] = None
    author_name: Optional[str] = None
    submitted_for_review_at: Optional[datetime] = None
    submitted_for_review_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None
    review_notes: Optional[str] = None
    published_at: Optional[datetime] = None
    is_archived: bool = False
    archived_at: Optional[datetime] = None
    archived_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    id: Optional[str] = None

    def __post_init__(self):
        if not self.title or not self.title.strip():
            raise ValidationError("Title is required", field="title")
        if not isinstance(self.type, ContentType):
            self.type = ContentType(self.type)
        if not isinstance(self.status, ContentStatus):
            self.status = ContentStatus(self.status)
        if self.start_date and self.end_date and ensure_utc(self.end_date) < ensure_utc(self.start_date):
            raise ValidationError("end_date must not be before start_date", field="end_date")
        self.normalize_article_body()

    def normalize_article_body(self) -> None:
        """Articles keep their text in ``body``, never in ``rich_text_content``."""
        if self.type is ContentType.ARTICLE and self.rich_text_content is not None:
            if not self.body:
                self.body = self.rich_text_content
            self.rich_text_content = None

    def is_creator(self, user_id: Optional[str]) -> bool:
        return user_id is not None and self.created_by == user_id

    @property
    def has_password(self) -> bool:
        return bool(self.password)

    def availability_failure(self, now: datetime) -> Optional[str]:
        """Reason the ``active`` flag or the ``[start_date, end_date]`` window hides the item, or None."""
        if self.active is not True:
            return "Content is not active"
        if self.start_date is not None and ensure_utc(self.start_date) > now:
            return "Content is not yet available"
        if self.end_date is not None and ensure_utc(self.end_date) < now:
            return "Content is no longer available"
        return None

    def versioned_values(self) -> Dict[str, Any]:
        """Document values of the versioned fields."""
        document = self.to_document()
        return {name: document.get(name) for name in VERSIONED_FIELDS}

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "ContentItem":
        values = {k: v for k, v in doc.items() if k in cls.__dataclass_fields__}
        for name in _DATETIME_FIELDS:
            values[name] = from_timestamp_ms(doc.get(name))
        values["tags"] = list(doc.get("tags") or [])
        return cls(**values)

    def to_document(self) -> Dict[str, Any]:
        document: Dict[str, Any] = {}
        for name in self.__dataclass_fields__:
            if name == "id":
                continue
            value = getattr(self, name)
            if name in _DATETIME_FIELDS:
                value = to_timestamp_ms(value)
            elif name in ("type", "status"):
                value = value.value
            elif name == "tags":
                value = list(value)
            document[name] = value
        return document

    def public_view(self) -> Dict[str, Any]:
        """Document form safe to hand to viewers: no password."""
        document = self.to_document()
        document.pop("password", None)
        document["id"] = self.id
        document["has_password"] = self.has_password
        return document
