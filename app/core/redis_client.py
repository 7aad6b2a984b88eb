"""Redis connection and the JSON cache used for doctor lookups."""

import json
from functools import lru_cache
from typing import Any, cast

import redis
import structlog
from starlette.concurrency import run_in_threadpool

from app.config import settings

logger = structlog.get_logger(__name__)


@lru_cache(maxsize=1)
def get_redis_client() -> redis.Redis:
    """Get cached Redis client."""
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


async def check_redis_connection() -> bool:
    """Check that Redis answers a ping."""
    try:
        # redis-py is blocking
        return bool(await run_in_threadpool(get_redis_client().ping))
    except redis.RedisError as e:
        logger.warning("redis_check_failed", error=str(e))
        return False


def close_redis_connection() -> None:
    """Close the cached client, if one was created."""
    if get_redis_client.cache_info().currsize:
        get_redis_client().close()
        get_redis_client.cache_clear()


class CacheManager:
    """
    JSON cache on top of Redis.

    A cache outage must never fail a request: every Redis error is logged and
    reported as a miss (reads) or as ``False``/``0`` (writes).
    """

    def __init__(self, redis_client: redis.Redis):
        """Initialize cache manager with Redis client."""
        self.redis = redis_client

    def get_json(self, key: str) -> Any | None:
        """Return the decoded value stored under key, or None."""
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
            logger.warning("cache_entry_corrupt", key=key)
            return None

    def set_json(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """
        Store a value as JSON.

        UUIDs, datetimes and decimals are written as strings.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds, no expiry when omitted

        Returns:
            True if stored
        """
        payload = json.dumps(value, default=str)
        try:
            if ttl:
                self.redis.setex(key, ttl, payload)
            else:
                self.redis.set(key, payload)
        except redis.RedisError as e:
            logger.warning("cache_write_failed", key=key, error=str(e))
            return False
        return True

    def delete(self, key: str) -> bool:
        """Drop one key."""
        try:
            self.redis.delete(key)
        except redis.RedisError as e:
            logger.warning("cache_delete_failed", key=key, error=str(e))
            return False
        return True

    def delete_pattern(self, pattern: str) -> int:
        """
        Drop every key matching a glob pattern (e.g. ``doctor:list:*``).

        Keys are collected with SCAN so large keyspaces do not block Redis.

        Returns:
            Number of keys deleted
        """
        try:
            keys = list(self.redis.scan_iter(match=pattern))
            if not keys:
                return 0
            return cast(int, self.redis.delete(*keys))
        except redis.RedisError as e:
            logger.warning("cache_delete_failed", pattern=pattern, error=str(e))
            return 0
