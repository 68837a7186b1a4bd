"""Redis client configuration and cache helpers."""

import json
from typing import Any, cast

import redis
import structlog

from ezhealth.config import Settings

logger = structlog.get_logger(__name__)


def create_redis_client(settings: Settings) -> redis.Redis:
    """
    Create a Redis client from settings.

    The client is owned by the application lifespan and closed on shutdown.
    """
    return redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        username=settings.redis_username,
        password=settings.redis_password,
        decode_responses=settings.redis_decode_responses,
        socket_connect_timeout=5,
        socket_keepalive=True,
        health_check_interval=30,
    )


def check_redis_connection(client: redis.Redis | None) -> bool:
    """
    Check if Redis connection is healthy.

    Returns:
        True if connection is healthy, False otherwise
    """
    if client is None:
        return False
    try:
        client.ping()
        return True
    except redis.RedisError:
        return False


class CacheManager:
    """Redis-based JSON cache.

    Cache errors are logged and reported as misses; callers fall back to the
    database.
    """

    def __init__(self, redis_client: redis.Redis):
        """Initialize cache manager with Redis client."""
        self.redis = redis_client

    def get_json(self, key: str) -> Any | None:
        """
        Get JSON value from cache and deserialize.

        Args:
            key: Cache key

        Returns:
            Deserialized object or None
        """
        try:
            value = cast(str | None, self.redis.get(key))
        except redis.RedisError as e:
            logger.warning("cache_read_failed", key=key, error=str(e))
            return None
        if not value:
            return None
        try:
            return json.loads(value)
        except ValueError:
            logger.warning("cache_value_corrupt", key=key)
            return None

    def set_json(
        self,
        key: str,
        value: Any,
        ttl: int | None = None,
    ) -> bool:
        """
        Serialize and set JSON value in cache.

        Args:
            key: Cache key
            value: Value to serialize and cache
            ttl: Time to live in seconds

        Returns:
            True if successful, False otherwise
        """
        json_value = json.dumps(value, default=str)
        try:
            if ttl:
                self.redis.setex(key, ttl, json_value)
            else:
                self.redis.set(key, json_value)
        except redis.RedisError as e:
            logger.warning("cache_write_failed", key=key, error=str(e))
            return False
        return True

    def delete_pattern(self, pattern: str) -> int:
        """
        Delete all keys matching a pattern.

        Args:
            pattern: Redis key pattern (e.g., 'doctor:list:*')

        Returns:
            Number of keys deleted
        """
        try:
            keys = list(self.redis.scan_iter(match=pattern))
            if keys:
                return cast(int, self.redis.delete(*keys))
        except redis.RedisError as e:
            logger.warning("cache_invalidate_failed", pattern=pattern, error=str(e))
        return 0
