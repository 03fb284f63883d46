"""Configuration for edu-media-commons."""

from .constants import (
    UserRole,
    ContentType,
    ContentStatus,
    WorkflowAction,
    OrderStatus,
    PricingTarget,
    AccessPath,
    Collections,
    STAFF_INVITE_ROLES,
    AUDIENCE_ROLES,
)
from .settings import EduMediaSettings, get_settings
from .logging_config import LoggingConfig, setup_logging, get_logger

__all__ = [
    "UserRole",
    "ContentType",
    "ContentStatus",
    "WorkflowAction",
    "OrderStatus",
    "PricingTarget",
    "AccessPath",
    "Collections",
    "STAFF_INVITE_ROLES",
    "AUDIENCE_ROLES",
    "EduMediaSettings",
    "get_settings",
    "LoggingConfig",
    "setup_logging",
    "get_logger",
]
