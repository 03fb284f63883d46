"""Profile repository over the document store."""

import logging
from typing import Any, Dict, List, Mapping, Optional

from ....config.constants import Collections, UserRole
from ....core.exceptions import (
    DuplicateKeyError,
    DuplicateResourceError,
    NotAuthenticatedError,
    ValidationError,
)
from ....protocols import DocumentStore
from ..entities.protocols import ProfileCache
from ..entities.user_profile import UserProfile

logger = logging.getLogger(__name__)


class ProfileRepository:
    """Loads and stores user profiles, optionally through a cache."""

    def __init__(self, store: DocumentStore, cache: Optional[ProfileCache] = None):
        if store is None:
            raise ValueError("Document store is required")
        self.store = store
        self.cache = cache

    async def _load_document(self, user_id: str) -> Optional[Dict[str, Any]]:
        if self.cache:
            cached = await self.cache.get(user_id)
            if cached is not None:
                return cached

        matches = await self.store.query(Collections.USER_PROFILES, {"user_id": user_id})
        if not matches:
            return None
        if len(matches) > 1:
            logger.error(f"Multiple profiles found for user {user_id}; using the first")

        document = matches[0]
        if self.cache:
            await self.cache.set(user_id, document)
        return document

    async def get_by_user_id(self, user_id: Optional[str]) -> Optional[UserProfile]:
        """Get the profile of a user, or None when absent or unreadable."""
        if not user_id:
            return None
        document = await self._load_document(user_id)
        if document is None:
            return None
        try:
            return UserProfile.from_document(document)
        except (KeyError, ValueError, ValidationError) as e:
            logger.warning(f"Malformed profile for user {user_id}: {e}")
            return None

    async def get_actor(self, actor_id: Optional[str]) -> Optional[UserProfile]:
        """Resolve the profile of an authenticated actor.

        Raises:
            NotAuthenticatedError: no actor id was supplied
        """
        if not actor_id:
            raise NotAuthenticatedError()
        return await self.get_by_user_id(actor_id)

    async def create(self, profile: UserProfile) -> UserProfile:
        """Insert a new profile.

        Raises:
            DuplicateResourceError: the user already has a profile, or an
                owner already exists and the new profile claims ownership
        """
        if profile.role is UserRole.OWNER:
            owners = await self.store.query(Collections.USER_PROFILES, {"role": UserRole.OWNER.value})
            if owners:
                raise DuplicateResourceError("An owner profile already exists")
        try:
            profile.id = await self.store.insert(Collections.USER_PROFILES, profile.to_document())
        except DuplicateKeyError as e:
            raise DuplicateResourceError(f"Profile already exists for user {profile.user_id}") from e
        logger.info(f"Created profile for user {profile.user_id} with role {profile.role.value}")
        return profile

    async def update(self, profile: UserProfile, fields: Mapping[str, Any]) -> UserProfile:
        """Patch fields of a stored profile and return the refreshed entity."""
        await self.store.patch(Collections.USER_PROFILES, profile.id, fields)
        if self.cache:
            await self.cache.invalidate(profile.user_id)
        refreshed = await self.store.get(Collections.USER_PROFILES, profile.id)
        return UserProfile.from_document(refreshed)

    async def list(self, role: Optional[UserRole] = None) -> List[UserProfile]:
        filters = {"role": role.value} if role else None
        documents = await self.store.query(Collections.USER_PROFILES, filters)
        return [UserProfile.from_document(doc) for doc in documents]

    async def get_by_email(self, email: Optional[str]) -> Optional[UserProfile]:
        """First profile stored under a (normalized) email address."""
        if not email:
            return None
        documents = await self.store.query(Collections.USER_PROFILES, {"email": email.strip().lower()})
        return UserProfile.from_document(documents[0]) if documents else None
