"""Bundle entities."""

from .bundle import ContentBundle, BundleItem

__all__ = ["ContentBundle", "BundleItem"]
