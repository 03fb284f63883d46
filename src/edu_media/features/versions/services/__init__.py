"""Version services."""

from .version_store import VersionStore, REVERTIBLE_FIELDS

__all__ = ["VersionStore", "REVERTIBLE_FIELDS"]
