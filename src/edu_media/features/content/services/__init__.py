"""Content services."""

from .content_service import ContentService

__all__ = ["ContentService"]
