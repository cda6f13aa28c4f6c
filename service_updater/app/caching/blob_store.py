"""
Blob storage over size-limited key-value stores.

Large blobs are split into fixed-size chunks stored under derived keys
(``{key}_c0``, ``{key}_c1`` ...) with the chunk count under ``{key}_s``.
"""

import math
from abc import ABC, abstractmethod
from typing import Optional

from shared.logging import get_logger
from .kv_store import KeyValueStore


DEFAULT_CHUNK_SIZE = 26214400  # 25 MiB


class BlobStore(ABC):
    """Write/read/delete of an arbitrarily large blob under one logical key."""

    def __init__(self, kv: KeyValueStore):
        self.kv = kv

    @abstractmethod
    async def put_blob(self, key: str, value: bytes) -> None:
        ...

    @abstractmethod
    async def get_blob(self, key: str) -> Optional[bytes]:
        ...

    @abstractmethod
    async def delete_blob(self, key: str) -> None:
        ...


class DirectBlobStore(BlobStore):
    """Stores each blob as a single value at its own key."""

    async def put_blob(self, key: str, value: bytes) -> None:
        await self.kv.put(key, value)

    async def get_blob(self, key: str) -> Optional[bytes]:
        return await self.kv.get(key)

    async def delete_blob(self, key: str) -> None:
        await self.kv.delete(key)


class ChunkedBlobStore(BlobStore):
    """Splits blobs into chunks no larger than ``chunk_size`` bytes."""

    def __init__(self, kv: KeyValueStore, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be > 0")
        super().__init__(kv)
        self.chunk_size = chunk_size
        self.logger = get_logger("updater.blob_store")

    @staticmethod
    def _count_key(key: str) -> str:
        return f"{key}_s"

    @staticmethod
    def _chunk_key(key: str, index: int) -> str:
        return f"{key}_c{index}"

    async def _chunk_count(self, key: str) -> Optional[int]:
        raw = await self.kv.get(self._count_key(key))
        if raw is None:
            return None
        try:
            count = int(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            self.logger.warning("Unreadable chunk count", key=key)
            return None
        return count if count >= 0 else None

    async def put_blob(self, key: str, value: bytes) -> None:
        await self.delete_blob(key)

        chunks = math.ceil(len(value) / self.chunk_size)
        await self.kv.put(self._count_key(key), str(chunks))

        for index in range(chunks):
            start = index * self.chunk_size
            await self.kv.put(self._chunk_key(key, index), value[start:start + self.chunk_size])

        self.logger.debug("Stored blob", key=key, size=len(value), chunks=chunks)

    async def get_blob(self, key: str) -> Optional[bytes]:
        chunks = await self._chunk_count(key)
        if chunks is None:
            return None

        parts = []
        for index in range(chunks):
            chunk = await self.kv.get(self._chunk_key(key, index))
            if chunk is None:
                self.logger.warning("Missing blob chunk", key=key, chunk=index, chunks=chunks)
                return None
            parts.append(chunk)

        return b"".join(parts)

    async def delete_blob(self, key: str) -> None:
        chunks = await self._chunk_count(key)
        if chunks is None:
            await self._delete_chunks_from(key, 0)
        else:
            for index in range(chunks):
                await self.kv.delete(self._chunk_key(key, index))
            await self._delete_chunks_from(key, chunks)

        await self.kv.delete(self._count_key(key))

    async def _delete_chunks_from(self, key: str, start: int) -> None:
        """Delete consecutive chunks from ``start`` up to the first absent one."""
        index = start
        while await self.kv.get(self._chunk_key(key, index)) is not None:
            await self.kv.delete(self._chunk_key(key, index))
            index += 1
        if index > start:
            self.logger.info("Removed orphaned blob chunks", key=key, first=start, count=index - start)


def blob_store_for(kv: KeyValueStore, chunk_size: Optional[int] = None) -> BlobStore:
    """Chunk when the store limits value size or a chunk size is requested."""
    if kv.max_value_size is not None:
        size = min(chunk_size, kv.max_value_size) if chunk_size else kv.max_value_size
        return ChunkedBlobStore(kv, size)
    if chunk_size:
        return ChunkedBlobStore(kv, chunk_size)
    return DirectBlobStore(kv)
