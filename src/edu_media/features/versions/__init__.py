"""Versions feature: append-only content snapshots and revert.

- entities/: ContentVersion snapshot and RevertResult
- services/: VersionStore
"""

from .entities import ContentVersion, RevertResult

__all__ = ["ContentVersion", "RevertResult"]
