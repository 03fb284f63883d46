"""Tests for the Redis profile cache."""

import json
import pytest
from unittest.mock import AsyncMock

from redis.exceptions import ConnectionError as RedisConnectionError

from edu_media.infrastructure.cache.redis_profile_cache import RedisProfileCache


@pytest.fixture
def redis_client():
    client = AsyncMock()
    client.get.return_value = None
    return client


class TestRedisProfileCache:
    """Test caching through a mocked Redis client."""

    @pytest.mark.asyncio
    async def test_set_and_get(self, redis_client):
        """Test documents are stored as JSON with the TTL."""
        cache = RedisProfileCache(redis_client, ttl=60, key_prefix="test:")
        await cache.set("user-1", {"role": "client"})
        redis_client.set.assert_awaited_once_with("test:user-1", json.dumps({"role": "client"}), ex=60)

        redis_client.get.return_value = json.dumps({"role": "client"})
        assert await cache.get("user-1") == {"role": "client"}

    @pytest.mark.asyncio
    async def test_zero_ttl_disables_writes(self, redis_client):
        """Test a zero TTL never writes."""
        cache = RedisProfileCache(redis_client, ttl=0)
        await cache.set("user-1", {"role": "client"})
        redis_client.set.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_redis_errors_are_misses(self, redis_client):
        """Test connection failures behave like cache misses."""
        redis_client.get.side_effect = RedisConnectionError("refused")
        redis_client.set.side_effect = RedisConnectionError("refused")
        redis_client.delete.side_effect = RedisConnectionError("refused")
        cache = RedisProfileCache(redis_client)

        assert await cache.get("user-1") is None
        await cache.set("user-1", {"role": "client"})
        await cache.invalidate("user-1")

    @pytest.mark.asyncio
    async def test_unreadable_entry_is_dropped(self, redis_client):
        """Test garbage in the cache is invalidated."""
        redis_client.get.return_value = "not json"
        cache = RedisProfileCache(redis_client, key_prefix="test:")

        assert await cache.get("user-1") is None
        redis_client.delete.assert_awaited_once_with("test:user-1")

    def test_from_settings_requires_url(self, settings):
        """Test building from settings needs a Redis URL."""
        with pytest.raises(ValueError):
            RedisProfileCache.from_settings(settings)
