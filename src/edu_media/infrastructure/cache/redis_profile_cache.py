"""Redis-backed profile cache."""

import json
import logging
from typing import Any, Dict, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from ...config.settings import EduMediaSettings

logger = logging.getLogger(__name__)


class RedisProfileCache:
    """ProfileCache storing profile documents as JSON strings with a TTL.

    Cache failures are logged and treated as misses; the document store stays
    the source of truth.
    """

    def __init__(self, client: redis.Redis, ttl: int = 300, key_prefix: str = "edu_media:profile:"):
        self.client = client
        self.ttl = ttl
        self.key_prefix = key_prefix

    @classmethod
    def from_settings(cls, settings: EduMediaSettings) -> "RedisProfileCache":
        if not settings.redis_url:
            raise ValueError("redis_url is not configured")
        client = redis.from_url(settings.redis_url, decode_responses=True)
        return cls(client, ttl=settings.profile_cache_ttl)

    def _key(self, user_id: str) -> str:
        return f"{self.key_prefix}{user_id}"

    async def get(self, user_id: str) -> Optional[Dict[str, Any]]:
        try:
            raw = await self.client.get(self._key(user_id))
        except RedisError as e:
            logger.warning(f"Profile cache read failed for {user_id}: {e}")
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning(f"Discarding unreadable cached profile for {user_id}")
            await self.invalidate(user_id)
            return None

    async def set(self, user_id: str, document: Dict[str, Any]) -> None:
        if self.ttl <= 0:
            return
        try:
            await self.client.set(self._key(user_id), json.dumps(document), ex=self.ttl)
        except RedisError as e:
            logger.warning(f"Profile cache write failed for {user_id}: {e}")

    async def invalidate(self, user_id: str) -> None:
        try:
            await self.client.delete(self._key(user_id))
        except RedisError as e:
            logger.warning(f"Profile cache invalidation failed for {user_id}: {e}")

    async def close(self) -> None:
        await self.client.aclose()
