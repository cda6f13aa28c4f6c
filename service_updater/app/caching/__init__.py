"""
Updater caching package.

Layers, bottom-up:

- kv_store: namespaced key-value backends (Redis, in-process)
- blob_store: chunked or direct blob storage on top of a key-value store
- cache_store: the typed adapter holding timestamp, version, payload and
  signature for the update feed
"""

from .kv_store import KeyValueStore, RedisKVStore, MemoryKVStore, create_kv_store
from .blob_store import BlobStore, ChunkedBlobStore, DirectBlobStore, blob_store_for
from .cache_store import CacheEntry, UpdateCacheStore

__all__ = [
    "KeyValueStore",
    "RedisKVStore",
    "MemoryKVStore",
    "create_kv_store",
    "BlobStore",
    "ChunkedBlobStore",
    "DirectBlobStore",
    "blob_store_for",
    "CacheEntry",
    "UpdateCacheStore",
]
