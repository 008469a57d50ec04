"""
Redis Snapshot Store for Roundtable
Shared snapshot storage so several host sessions see the same plot state.
"""

import logging
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from ..core.errors import PersistenceUnavailable
from .persistence import SnapshotBackend

logger = logging.getLogger("roundtable.redis")


class RedisSnapshotStore(SnapshotBackend):
    """Snapshot backend on Redis string keys."""

    name = "redis"

    KEY_PREFIX = "roundtable:plots:"

    def __init__(self, redis_url: str = "redis://localhost:6379", ttl_seconds: Optional[int] = None):
        self.redis_url = redis_url
        self.ttl_seconds = ttl_seconds
        self._client: Optional[redis.Redis] = None

    async def connect(self) -> bool:
        """Establish connection to Redis. Returns False when it is unreachable."""
        try:
            self._client = redis.from_url(self.redis_url, decode_responses=True)
            await self._client.ping()
            logger.info(f"[connect] Connected to Redis at {self.redis_url}")
            return True
        except Exception as e:
            logger.warning(f"[connect] Redis unavailable at {self.redis_url}: {e}")
            self._client = None
            return False

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.close()
            self._client = None

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            raise RuntimeError("Redis client not connected. Call connect() first.")
        return self._client

    @property
    def is_available(self) -> bool:
        return self._client is not None

    def key_for(self, key: str) -> str:
        return f"{self.KEY_PREFIX}{key}"

    async def save(self, key: str, payload: str) -> None:
        try:
            if self.ttl_seconds:
                await self.client.setex(self.key_for(key), self.ttl_seconds, payload)
            else:
                await self.client.set(self.key_for(key), payload)
        except RedisError as e:
            raise PersistenceUnavailable(f"Redis write failed: {e}") from e

    async def load(self, key: str) -> Optional[str]:
        try:
            return await self.client.get(self.key_for(key))
        except RedisError as e:
            raise PersistenceUnavailable(f"Redis read failed: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await self.client.delete(self.key_for(key))
        except RedisError as e:
            raise PersistenceUnavailable(f"Redis delete failed: {e}") from e
