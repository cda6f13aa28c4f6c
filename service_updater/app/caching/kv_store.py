"""
Key-value primitives backing the update cache.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional, Union

import redis.asyncio as redis
from redis.exceptions import RedisError

from shared.logging import get_logger
from shared.errors import CacheStoreError


Value = Union[bytes, str]


def _as_bytes(value: Value) -> bytes:
    return value.encode("utf-8") if isinstance(value, str) else value


class KeyValueStore(ABC):
    """Namespaced get/put/delete over opaque values."""

    #: Largest single value the backend accepts, ``None`` when unbounded.
    max_value_size: Optional[int] = None

    def __init__(self, namespace: str):
        self.namespace = namespace

    def _make_key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """Return the stored value, ``None`` when the key is absent."""

    @abstractmethod
    async def put(self, key: str, value: Value) -> None:
        """Store a value, replacing any previous one."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove a key. Deleting an absent key is a no-op."""

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None


class RedisKVStore(KeyValueStore):
    """Redis-backed store."""

    def __init__(self, redis_url: str, namespace: str = "update", max_value_size: Optional[int] = None):
        super().__init__(namespace)
        self.redis_url = redis_url
        self.max_value_size = max_value_size
        self.logger = get_logger("updater.kv_store")
        self._redis: Optional[redis.Redis] = None

    async def _get_redis(self) -> redis.Redis:
        """Get Redis connection."""
        if self._redis is None:
            self._redis = redis.from_url(
                self.redis_url,
                socket_connect_timeout=5,
                socket_timeout=5,
                health_check_interval=30
            )
        return self._redis

    async def get(self, key: str) -> Optional[bytes]:
        try:
            redis_client = await self._get_redis()
            value = await redis_client.get(self._make_key(key))
        except RedisError as e:
            self.logger.error("Cache get error", key=key, error=str(e))
            raise CacheStoreError(str(e), {"key": key, "operation": "get"})
        if value is None:
            return None
        return _as_bytes(value)

    async def put(self, key: str, value: Value) -> None:
        data = _as_bytes(value)
        if self.max_value_size is not None and len(data) > self.max_value_size:
            raise CacheStoreError("Value exceeds store limit", {"key": key, "size": len(data)})
        try:
            redis_client = await self._get_redis()
            await redis_client.set(self._make_key(key), data)
        except RedisError as e:
            self.logger.error("Cache set error", key=key, error=str(e))
            raise CacheStoreError(str(e), {"key": key, "operation": "put"})

    async def delete(self, key: str) -> None:
        try:
            redis_client = await self._get_redis()
            await redis_client.delete(self._make_key(key))
        except RedisError as e:
            self.logger.error("Cache delete error", key=key, error=str(e))
            raise CacheStoreError(str(e), {"key": key, "operation": "delete"})

    async def ping(self) -> bool:
        try:
            redis_client = await self._get_redis()
            await redis_client.ping()
            return True
        except RedisError:
            return False

    async def close(self) -> None:
        if self._redis is not None:
            await self._redis.aclose()
            self._redis = None
            self.logger.info("Redis connection closed")


class MemoryKVStore(KeyValueStore):
    """In-process store for single-node deployments and tests."""

    def __init__(self, namespace: str = "update", max_value_size: Optional[int] = None):
        super().__init__(namespace)
        self.max_value_size = max_value_size
        self._data: Dict[str, bytes] = {}

    async def get(self, key: str) -> Optional[bytes]:
        return self._data.get(self._make_key(key))

    async def put(self, key: str, value: Value) -> None:
        data = _as_bytes(value)
        if self.max_value_size is not None and len(data) > self.max_value_size:
            raise CacheStoreError("Value exceeds store limit", {"key": key, "size": len(data)})
        self._data[self._make_key(key)] = data

    async def delete(self, key: str) -> None:
        self._data.pop(self._make_key(key), None)

    def keys(self) -> list:
        """Logical keys currently stored, without the namespace prefix."""
        prefix = f"{self.namespace}:"
        return sorted(k[len(prefix):] for k in self._data if k.startswith(prefix))


def create_kv_store(
    backend: str,
    redis_url: str,
    namespace: str = "update",
    max_value_size: Optional[int] = None,
) -> Optional[KeyValueStore]:
    """Build the configured backend, ``None`` when caching is disabled."""
    backend = backend.lower()
    if backend == "redis":
        return RedisKVStore(redis_url, namespace, max_value_size)
    if backend == "memory":
        return MemoryKVStore(namespace, max_value_size)
    if backend == "none":
        return None
    raise ValueError(f"Unknown cache backend: {backend}")
