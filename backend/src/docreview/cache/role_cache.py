"""Role cache: optional fast path in front of role resolution.

The cache is an interface with two implementations:
- RedisRoleCache: shared cache across API instances (TTL per entry)
- NullRoleCache: no-op used when Redis is not configured or unreachable

Callers never check whether a cache is available; they always talk to a
RoleCache. Redis errors during get/set/delete are logged and treated as a miss,
so the cache can never fail a request.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from redis import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

KEY_PREFIX = "user_role"


def role_cache_key(principal_id: str) -> str:
    return f"{KEY_PREFIX}:{principal_id}"


class RoleCache(ABC):
    """Capability interface for caching resolved roles."""

    @abstractmethod
    def get(self, principal_id: str) -> Optional[str]:
        """Return the cached role string or None on miss."""

    @abstractmethod
    def set(self, principal_id: str, role: str) -> None:
        """Cache a resolved role."""

    @abstractmethod
    def delete(self, principal_id: str) -> None:
        """Invalidate a principal's cached role."""


class NullRoleCache(RoleCache):
    """Cache that never stores anything."""

    def get(self, principal_id: str) -> Optional[str]:
        return None

    def set(self, principal_id: str, role: str) -> None:
        return None

    def delete(self, principal_id: str) -> None:
        return None


class RedisRoleCache(RoleCache):
    """Redis-backed role cache.

    Args:
        client: Redis client created with decode_responses=True
        ttl_seconds: Expiry for cached roles
    """

    def __init__(self, client: Redis, ttl_seconds: int = 300):
        self.client = client
        self.ttl_seconds = ttl_seconds

    def get(self, principal_id: str) -> Optional[str]:
        key = role_cache_key(principal_id)
        try:
            cached = self.client.get(key)
        except RedisError as e:
            logger.warning(f"Role cache GET failed: key={key}, error={e}")
            return None
        logger.debug(f"Role cache GET {key}: {'HIT' if cached else 'MISS'}")
        return cached

    def set(self, principal_id: str, role: str) -> None:
        key = role_cache_key(principal_id)
        try:
            self.client.set(key, role, ex=self.ttl_seconds)
        except RedisError as e:
            logger.warning(f"Role cache SET failed: key={key}, error={e}")

    def delete(self, principal_id: str) -> None:
        key = role_cache_key(principal_id)
        try:
            self.client.delete(key)
        except RedisError as e:
            logger.warning(f"Role cache DELETE failed: key={key}, error={e}")


def build_role_cache(redis_url: Optional[str], ttl_seconds: int = 300) -> RoleCache:
    """Create the role cache for this process.

    Returns a NullRoleCache if no URL is configured or Redis does not answer
    a PING, allowing graceful degradation.
    """
    if not redis_url:
        logger.info("Role cache disabled: REDIS_URL not set")
        return NullRoleCache()

    try:
        client = Redis.from_url(redis_url, decode_responses=True)
        client.ping()
    except RedisError as e:
        logger.warning(f"Role cache disabled: Redis unavailable ({e})")
        return NullRoleCache()

    logger.info("Role cache enabled (Redis)")
    return RedisRoleCache(client, ttl_seconds=ttl_seconds)
