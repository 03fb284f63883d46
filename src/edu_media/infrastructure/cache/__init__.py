"""Cache adapters."""

from .redis_profile_cache import RedisProfileCache

__all__ = ["RedisProfileCache"]
