"""User services."""

from .user_service import UserService
from .user_group_service import UserGroupService

__all__ = ["UserService", "UserGroupService"]
