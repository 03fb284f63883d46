"""Content request models."""

from .requests import CreateContentRequest, UpdateContentRequest

__all__ = ["CreateContentRequest", "UpdateContentRequest"]
