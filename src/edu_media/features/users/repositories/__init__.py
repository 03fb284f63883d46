"""User repositories."""

from .profile_repository import ProfileRepository

__all__ = ["ProfileRepository"]
