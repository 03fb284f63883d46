"""Recommendation request models."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class CreateRecommendationRequest(BaseModel):
    """Request model for recommending a content item."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    content_id: str = Field(..., min_length=1, description="Recommended content")
    recipient_email: EmailStr = Field(..., description="Who receives the recommendation")
    message: Optional[str] = Field(None, max_length=2000, description="Personal note")

    @field_validator("recipient_email")
    @classmethod
    def normalize_recipient(cls, v: str) -> str:
        return v.lower()

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: Optional[str]) -> Optional[str]:
        return v or None
