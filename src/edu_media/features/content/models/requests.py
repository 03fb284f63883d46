"""Content request models."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ....config.constants import ContentType
from ....utils.timezone import ensure_utc


class _ContentFields(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    @field_validator("tags", check_fields=False)
    @classmethod
    def validate_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return v
        seen = []
        for tag in v:
            tag = tag.strip()
            if tag and tag not in seen:
                seen.append(tag)
        return seen

    @field_validator("start_date", "end_date", check_fields=False)
    @classmethod
    def validate_dates(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v) if v is not None else v

    @field_validator("password", check_fields=False)
    @classmethod
    def validate_password(cls, v: Optional[str]) -> Optional[str]:
        # Empty password means "no password"
        return v or None


class CreateContentRequest(_ContentFields):
    """Request model for creating a content item."""

    title: str = Field(..., min_length=1, max_length=300, description="Display title")
    type: ContentType = Field(..., description="Media type")
    description: Optional[str] = Field(None, description="Short description")
    file_ref: Optional[str] = Field(None, description="Blob reference of the media file")
    external_url: Optional[str] = Field(None, description="External media URL")
    rich_text_content: Optional[str] = Field(None, description="Rich text (moved to body for articles)")
    body: Optional[str] = Field(None, description="Article body")
    thumbnail_ref: Optional[str] = Field(None, description="Blob reference of the thumbnail")
    is_public: bool = Field(False, description="Visible to everyone once published")
    tags: List[str] = Field(default_factory=list, description="Free-form tags")
    active: bool = Field(True, description="Availability switch")
    start_date: Optional[datetime] = Field(None, description="Available from")
    end_date: Optional[datetime] = Field(None, description="Available until")
    password: Optional[str] = Field(None, description="Viewing password")

    @model_validator(mode="after")
    def validate_window(self) -> "CreateContentRequest":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class UpdateContentRequest(_ContentFields):
    """Request model for editing a content item.

    Only fields explicitly set are applied.
    """

    title: Optional[str] = Field(None, min_length=1, max_length=300)
    type: Optional[ContentType] = None
    description: Optional[str] = None
    file_ref: Optional[str] = None
    external_url: Optional[str] = None
    rich_text_content: Optional[str] = None
    body: Optional[str] = None
    thumbnail_ref: Optional[str] = None
    is_public: Optional[bool] = None
    tags: Optional[List[str]] = None
    active: Optional[bool] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    password: Optional[str] = None

    @field_validator("title", "type", "is_public", "active")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("field cannot be cleared")
        return v

    def changes(self) -> Dict[str, Any]:
        """Explicitly set fields and their values."""
        return {name: getattr(self, name) for name in self.model_fields_set}
