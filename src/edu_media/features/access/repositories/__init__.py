"""Access repositories."""

from .grant_repository import GrantRepository, GRANT_COLLECTIONS

__all__ = ["GrantRepository", "GRANT_COLLECTIONS"]
