"""
Typed cache adapter for update content.
"""

from dataclasses import dataclass
from typing import Optional

from shared.logging import get_logger
from ..models import UpdateContent
from .blob_store import BlobStore, blob_store_for
from .kv_store import KeyValueStore


CACHE_KEY_T = "time"
CACHE_KEY_V = "version"
CACHE_KEY_C = "content"
CACHE_KEY_S = "sign"


@dataclass
class CacheEntry:
    """Snapshot of everything the cache holds for the update feed."""
    timestamp: Optional[int] = None
    version: Optional[int] = None
    payload: Optional[bytes] = None
    signature: Optional[bytes] = None

    @property
    def is_complete(self) -> bool:
        return self.version is not None and self.payload is not None and self.signature is not None

    def age_ms(self, now_ms: int) -> Optional[int]:
        if self.timestamp is None:
            return None
        return now_ms - self.timestamp

    def to_content(self) -> UpdateContent:
        if self.version is None:
            raise ValueError("cache entry has no version")
        return UpdateContent(
            v=self.version,
            c=self.payload.decode("utf-8") if self.payload is not None else None,
            s=self.signature.decode("utf-8") if self.signature is not None else None,
        )


class UpdateCacheStore:
    """Reads and writes the four cache fields over a key-value store."""

    def __init__(self, kv: KeyValueStore, blobs: Optional[BlobStore] = None):
        self.kv = kv
        self.blobs = blobs or blob_store_for(kv)
        self.logger = get_logger("updater.cache_store")

    async def _get_int(self, key: str) -> Optional[int]:
        raw = await self.kv.get(key)
        if raw is None:
            return None
        try:
            return int(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            self.logger.warning("Unreadable integer in cache", key=key)
            return None

    async def get_timestamp(self) -> Optional[int]:
        return await self._get_int(CACHE_KEY_T)

    async def put_timestamp(self, timestamp_ms: int) -> None:
        await self.kv.put(CACHE_KEY_T, str(int(timestamp_ms)))

    async def get_version(self) -> Optional[int]:
        return await self._get_int(CACHE_KEY_V)

    async def put_version(self, version: int) -> None:
        await self.kv.put(CACHE_KEY_V, str(int(version)))

    async def get_blob(self, key: str) -> Optional[bytes]:
        return await self.blobs.get_blob(key)

    async def put_blob(self, key: str, value: bytes) -> None:
        await self.blobs.put_blob(key, value)

    async def delete_blob(self, key: str) -> None:
        await self.blobs.delete_blob(key)

    async def _get_text_blob(self, key: str) -> Optional[bytes]:
        raw = await self.get_blob(key)
        if raw is None:
            return None
        try:
            raw.decode("utf-8")
        except UnicodeDecodeError:
            self.logger.warning("Undecodable blob in cache", key=key)
            return None
        return raw

    async def read_entry(self) -> CacheEntry:
        """Load every cache field; absent or unreadable fields come back as ``None``."""
        return CacheEntry(
            timestamp=await self.get_timestamp(),
            version=await self.get_version(),
            payload=await self._get_text_blob(CACHE_KEY_C),
            signature=await self._get_text_blob(CACHE_KEY_S),
        )

    async def touch(self, version: int, now_ms: int) -> None:
        """Record a version-only fact learned from the origin."""
        await self.put_timestamp(now_ms)
        await self.put_version(version)

    async def save(self, content: UpdateContent, now_ms: int) -> None:
        """Write-through of content fetched from the origin."""
        if not content.is_complete:
            await self.touch(content.v, now_ms)
            return

        await self.put_blob(CACHE_KEY_C, content.c.encode("utf-8"))
        await self.put_blob(CACHE_KEY_S, content.s.encode("utf-8"))
        await self.touch(content.v, now_ms)

        self.logger.debug("Cache updated", version=content.v)
