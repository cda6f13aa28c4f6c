"""
Unit tests for key-value backends.
"""

import pytest
from unittest.mock import AsyncMock, patch
from redis.exceptions import ConnectionError as RedisConnectionError

from service_updater.app.caching.kv_store import (
    MemoryKVStore,
    RedisKVStore,
    create_kv_store,
)
from shared.errors import CacheStoreError


class TestRedisKVStore:
    """Test cases for RedisKVStore."""

    @pytest.fixture
    def store(self):
        return RedisKVStore("redis://localhost:6379/0", namespace="update")

    @pytest.fixture
    def mock_redis(self):
        client = AsyncMock()
        client.get.return_value = None
        return client

    @pytest.mark.asyncio
    async def test_get_uses_namespaced_key(self, store, mock_redis):
        mock_redis.get.return_value = b"3"

        with patch.object(store, '_get_redis', new_callable=AsyncMock) as mock_get_redis:
            mock_get_redis.return_value = mock_redis

            result = await store.get("version")

        assert result == b"3"
        mock_redis.get.assert_called_once_with("update:version")

    @pytest.mark.asyncio
    async def test_get_missing_key(self, store, mock_redis):
        with patch.object(store, '_get_redis', new_callable=AsyncMock) as mock_get_redis:
            mock_get_redis.return_value = mock_redis

            assert await store.get("time") is None

    @pytest.mark.asyncio
    async def test_put_encodes_text(self, store, mock_redis):
        with patch.object(store, '_get_redis', new_callable=AsyncMock) as mock_get_redis:
            mock_get_redis.return_value = mock_redis

            await store.put("time", "1000")

        mock_redis.set.assert_called_once_with("update:time", b"1000")

    @pytest.mark.asyncio
    async def test_delete(self, store, mock_redis):
        with patch.object(store, '_get_redis', new_callable=AsyncMock) as mock_get_redis:
            mock_get_redis.return_value = mock_redis

            await store.delete("content_c0")

        mock_redis.delete.assert_called_once_with("update:content_c0")

    @pytest.mark.asyncio
    async def test_redis_failure_raises_cache_store_error(self, store, mock_redis):
        mock_redis.get.side_effect = RedisConnectionError("connection refused")

        with patch.object(store, '_get_redis', new_callable=AsyncMock) as mock_get_redis:
            mock_get_redis.return_value = mock_redis

            with pytest.raises(CacheStoreError) as exc_info:
                await store.get("version")

        assert exc_info.value.details["operation"] == "get"

    @pytest.mark.asyncio
    async def test_put_respects_value_limit(self):
        store = RedisKVStore("redis://localhost:6379/0", max_value_size=3)

        with pytest.raises(CacheStoreError):
            await store.put("content_c0", b"abcd")

    @pytest.mark.asyncio
    async def test_ping_failure(self, store, mock_redis):
        mock_redis.ping.side_effect = RedisConnectionError("down")

        with patch.object(store, '_get_redis', new_callable=AsyncMock) as mock_get_redis:
            mock_get_redis.return_value = mock_redis

            assert await store.ping() is False


class TestMemoryKVStore:
    """Test cases for MemoryKVStore."""

    @pytest.mark.asyncio
    async def test_namespaces_are_isolated(self):
        first = MemoryKVStore("a")
        second = MemoryKVStore("b")
        second._data = first._data

        await first.put("version", "1")

        assert await first.get("version") == b"1"
        assert await second.get("version") is None

    @pytest.mark.asyncio
    async def test_delete_absent_key(self):
        store = MemoryKVStore()
        await store.delete("missing")
        assert store.keys() == []


class TestCreateKVStore:
    """Test cases for create_kv_store."""

    def test_backends(self):
        assert isinstance(create_kv_store("redis", "redis://localhost:6379/0"), RedisKVStore)
        assert isinstance(create_kv_store("Memory", "redis://unused"), MemoryKVStore)
        assert create_kv_store("none", "redis://unused") is None

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            create_kv_store("memcached", "redis://unused")
