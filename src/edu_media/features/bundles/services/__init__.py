"""Bundle services."""

from .bundle_service import BundleService

__all__ = ["BundleService"]
