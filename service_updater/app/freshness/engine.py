"""
Cache freshness and revalidation policy for the update feed.
"""

import time
from dataclasses import dataclass
from typing import Callable, Optional, TYPE_CHECKING

import httpx

from shared.logging import get_logger
from shared.errors import CacheStoreError
from ..adapters.origin_client import OriginClient
from ..caching.cache_store import CacheEntry, UpdateCacheStore
from ..models import FreshnessDecision, UpdateContent

if TYPE_CHECKING:  # pragma: no cover - imported for typing only
    from shared.metrics import MetricsCollector


DEFAULT_CACHE_TIMEOUT_MS = 300000  # 5 min


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class UpdaterEnv:
    """Per-request environment: origin base URL and optional cache store."""
    host_url: str
    cache: Optional[UpdateCacheStore] = None


class FreshnessEngine:
    """Decides between serving the cache, revalidating it, or refetching.

    The engine keeps no per-request state; the environment is passed to
    every call. Concurrent requests may both miss and both refetch, the
    last write-through wins.
    """

    def __init__(
        self,
        timeout_ms: int = DEFAULT_CACHE_TIMEOUT_MS,
        *,
        refresh_on_confirm: bool = True,
        clock: Optional[Callable[[], int]] = None,
        metrics: Optional["MetricsCollector"] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        origin_timeout: float = 10.0,
    ):
        if timeout_ms < 0:
            raise ValueError("timeout_ms must be >= 0")
        self.timeout_ms = timeout_ms
        self.refresh_on_confirm = refresh_on_confirm
        self.clock = clock or _now_ms
        self.metrics = metrics
        self.transport = transport
        self.origin_timeout = origin_timeout
        self.logger = get_logger("updater.engine")

    def origin_for(self, env: UpdaterEnv) -> OriginClient:
        return OriginClient(
            env.host_url,
            timeout=self.origin_timeout,
            transport=self.transport,
            metrics=self.metrics,
        )

    async def get_version(self, env: UpdaterEnv) -> Optional[int]:
        """Current version, or ``None`` when neither cache nor origin has one."""
        content = await self._resolve(env, "version")
        return content.v if content is not None else None

    async def get_content(self, env: UpdaterEnv) -> Optional[UpdateContent]:
        """Current version with payload and signature, or ``None``."""
        return await self._resolve(env, "content")

    def evaluate(self, entry: CacheEntry, now_ms: int) -> Optional[FreshnessDecision]:
        """Age-only verdict: FRESH, MISS, or ``None`` when a version check is needed."""
        if not entry.is_complete:
            return FreshnessDecision.MISS
        age = entry.age_ms(now_ms)
        if age is not None and age < self.timeout_ms:
            return FreshnessDecision.FRESH
        return None

    async def _resolve(self, env: UpdaterEnv, operation: str) -> Optional[UpdateContent]:
        origin = self.origin_for(env)

        if env.cache is None:
            self._record_decision(operation, FreshnessDecision.MISS)
            return await origin.fetch_content()

        entry = await self._read_entry(env.cache)
        decision = self.evaluate(entry, self.clock())
        if decision is None:
            decision = await self._confirm(env.cache, origin, entry)

        self._record_decision(operation, decision)
        self.logger.debug("Freshness decision", operation=operation, decision=decision.value, version=entry.version)

        if decision is not FreshnessDecision.MISS:
            return entry.to_content()

        content = await origin.fetch_content()
        if content is not None:
            await self._write_through(env.cache, content)
        return content

    async def _confirm(self, cache: UpdateCacheStore, origin: OriginClient, entry: CacheEntry) -> FreshnessDecision:
        """Revalidate a stale entry with a version-only origin call."""
        try:
            version = await origin.fetch_version()
        except Exception as exc:
            self.logger.warning("Version check failed, refetching", error=str(exc))
            return FreshnessDecision.MISS

        if version is None or version != entry.version:
            self.logger.info("Cached version not confirmed", cached=entry.version, origin=version)
            return FreshnessDecision.MISS

        if self.refresh_on_confirm:
            try:
                await cache.touch(version, self.clock())
            except CacheStoreError as exc:
                self._record_store_error("touch", exc)
        return FreshnessDecision.CONFIRMED_STALE

    async def _read_entry(self, cache: UpdateCacheStore) -> CacheEntry:
        try:
            return await cache.read_entry()
        except CacheStoreError as exc:
            self._record_store_error("read", exc)
            return CacheEntry()

    async def _write_through(self, cache: UpdateCacheStore, content: UpdateContent) -> None:
        try:
            await cache.save(content, self.clock())
        except CacheStoreError as exc:
            self._record_store_error("write", exc)

    def _record_store_error(self, operation: str, exc: CacheStoreError) -> None:
        self.logger.error("Cache store failure", operation=operation, error=exc.message, details=exc.details)
        if self.metrics:
            self.metrics.increment_counter("cache_store_errors_total", operation=operation)

    def _record_decision(self, operation: str, decision: FreshnessDecision) -> None:
        if self.metrics:
            self.metrics.increment_counter("cache_decisions_total", operation=operation, decision=decision.value)
