"""Users feature: profiles, roles, permission overrides and user groups."""

from .entities import UserProfile, UserGroup, ProfileCache
from .repositories import ProfileRepository
from .services import UserService, UserGroupService

__all__ = [
    "UserProfile",
    "UserGroup",
    "ProfileCache",
    "ProfileRepository",
    "UserService",
    "UserGroupService",
]
