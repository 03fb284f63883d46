"""Runtime settings for edu-media-commons.

Values come from the environment (prefixed ``EDU_MEDIA_``) or a ``.env`` file.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import UPPER_ALPHANUMERIC, MIXED_ALPHANUMERIC


class EduMediaSettings(BaseSettings):
    """Settings shared by all services in the library."""

    model_config = SettingsConfigDict(
        env_prefix="EDU_MEDIA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="edu-media")
    environment: str = Field(default="development")
    site_url: str = Field(default="http://localhost:3000")
    organization_name: str = Field(default="EduMedia")

    # Storage
    database_url: Optional[str] = Field(default=None)
    documents_table: str = Field(default="documents")
    db_pool_min_size: int = Field(default=1, ge=1)
    db_pool_max_size: int = Field(default=10, ge=1)

    # Redis profile cache
    redis_url: Optional[str] = Field(default=None)
    profile_cache_ttl: int = Field(default=300, ge=0)  # seconds

    # Identity tokens
    jwt_secret: SecretStr = Field(default=SecretStr("change-me-in-production"))
    jwt_algorithm: str = Field(default="HS256")
    jwt_audience: Optional[str] = Field(default=None)
    jwt_issuer: Optional[str] = Field(default=None)

    # Codes and tokens
    invite_code_length: int = Field(default=8, ge=4)
    invite_code_charset: str = Field(default=UPPER_ALPHANUMERIC)
    share_token_length: int = Field(default=32, ge=16)
    share_token_charset: str = Field(default=MIXED_ALPHANUMERIC)
    code_generation_max_attempts: int = Field(default=10, ge=1)
    default_share_expiry_days: Optional[int] = Field(default=None, ge=1)

    # Commerce
    require_purchase_approval: bool = Field(default=False)

    # Analytics
    analytics_recent_days: int = Field(default=30, ge=1)

    # Notifications
    notification_sender: str = Field(default="no-reply@edumedia.dev")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        allowed = {"development", "testing", "staging", "production"}
        if v.lower() not in allowed:
            raise ValueError(f"environment must be one of {sorted(allowed)}")
        return v.lower()

    @field_validator("invite_code_charset", "share_token_charset")
    @classmethod
    def validate_charset(cls, v: str) -> str:
        if len(set(v)) < 2:
            raise ValueError("charset must contain at least two distinct characters")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache()
def get_settings() -> EduMediaSettings:
    """Get cached settings instance."""
    return EduMediaSettings()
