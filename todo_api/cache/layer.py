import json
import logging
from typing import Any, Optional

from redis.asyncio import Redis, RedisError

from todo_api.core.config import Settings

logger = logging.getLogger(__name__)


def make_redis(settings: Settings) -> Redis:
    return Redis.from_url(
        settings.redis_dsn,
        encoding="utf-8",
        decode_responses=True,
        max_connections=settings.redis_pool_size,
        socket_connect_timeout=settings.redis_socket_timeout,
        socket_timeout=settings.redis_socket_timeout,
        socket_keepalive=True,
        health_check_interval=30,
    )


class CacheLayer:
    """
    Best-effort Redis cache in front of the todo store.

    The store is the source of truth. Every Redis failure is logged and
    reported to the caller as a miss (reads) or silently dropped (writes and
    deletes), so a broken cache only ever costs a database round trip.

    Features:
    - Fixed TTL on every entry
    - Automatic key namespacing
    - Graceful degradation when Redis is unavailable
    """

    def __init__(self, redis: Redis | None, namespace: str, default_ttl: int):
        self._redis = redis
        self.namespace = namespace
        self.default_ttl = default_ttl

        # Stats tracking
        self.stats = {
            "hits": 0,
            "misses": 0,
            "errors": 0,
        }

    async def init_cache(self) -> None:
        """Verify the Redis connection; a failure leaves the cache degraded."""
        if self._redis is None:
            logger.warning("No Redis client configured, caching disabled")
            return

        try:
            await self._redis.ping()
            logger.info("Redis connection established")
        except RedisError as e:
            # Keep the client: redis-py reconnects on the next command
            logger.error(f"Redis initialization failed, running degraded: {e}")

    def _key(self, key: str) -> str:
        """Build namespaced cache key."""
        return f"{self.namespace}{key}"

    def _serialize(self, value: Any) -> str:
        return json.dumps(value, default=str)

    def _deserialize(self, raw: str) -> Any:
        return json.loads(raw)

    async def get(self, key: str) -> Optional[Any]:
        """
        Look up a cached value.

        Returns None on a miss, on a Redis error, and on a payload that is not
        valid JSON, so callers fall back to the store in all three cases.
        """
        if self._redis is None:
            self.stats["misses"] += 1
            return None

        namespaced = self._key(key)
        try:
            raw = await self._redis.get(namespaced)
        except RedisError as e:
            logger.error(f"Redis GET error for {key}: {e}")
            self.stats["errors"] += 1
            return None

        if raw is None:
            self.stats["misses"] += 1
            logger.debug(f"Cache miss for {key}")
            return None

        try:
            value = self._deserialize(raw)
        except json.JSONDecodeError:
            logger.warning(f"Discarding undecodable cache entry {key}")
            self.stats["misses"] += 1
            return None

        self.stats["hits"] += 1
        logger.debug(f"Cache hit for {key}")
        return value

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """
        Store a value with a fixed TTL (seconds). Failures are logged only.
        """
        if self._redis is None:
            return

        try:
            data = self._serialize(value)
            await self._redis.set(self._key(key), data, ex=ttl or self.default_ttl)
            logger.debug(f"Stored {key} for {ttl or self.default_ttl}s")
        except (RedisError, TypeError, ValueError) as e:
            logger.error(f"Redis SET error for {key}: {e}")
            self.stats["errors"] += 1

    async def delete(self, key: str) -> None:
        """
        Delete a key. Failures are logged only; the entry then lives until its
        TTL runs out.
        """
        if self._redis is None:
            return

        try:
            await self._redis.delete(self._key(key))
            logger.debug(f"Invalidated {key}")
        except RedisError as e:
            logger.warning(f"Redis DELETE error for {key}: {e}")
            self.stats["errors"] += 1

    async def ping(self) -> bool:
        if self._redis is None:
            return False
        try:
            return bool(await self._redis.ping())
        except RedisError:
            return False

    async def close(self) -> None:
        """Graceful shutdown of cache connections."""
        if self._redis:
            try:
                await self._redis.aclose()
                logger.info("Redis connection closed")
            except RedisError as e:
                logger.error(f"Error closing Redis: {e}")

    def get_stats(self) -> dict:
        total = self.stats["hits"] + self.stats["misses"]
        return {
            **self.stats,
            "hit_rate": self.stats["hits"] / total if total > 0 else 0,
        }
