"""Version entities."""

from .content_version import ContentVersion, RevertResult

__all__ = ["ContentVersion", "RevertResult"]
