"""User entities."""

from .user_profile import UserProfile, UserGroup
from .protocols import ProfileCache

__all__ = ["UserProfile", "UserGroup", "ProfileCache"]
