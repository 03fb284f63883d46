"""Bundles feature: named, ordered collections of content items."""

from .entities import ContentBundle, BundleItem

__all__ = ["ContentBundle", "BundleItem"]
