from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from cinepick_core.config import LOOKUP_TIMEOUT_SEC, METADATA_CACHE_TTL_SEC
from cinepick_core.errors import CatalogLookupError
from cinepick_core.types import ItemKey
from cinepick_tmdb.cache import MetadataCache, metadata_cache_key
from cinepick_tmdb.metadata import CatalogMetadata
from cinepick_watchlist.schemas import TrackedItem

from .types import CatalogLookup, EnrichedItem

log = logging.getLogger(__name__)


class MetadataEnricher:
    """
    Resolves catalog metadata for tracked items.

    - One lookup per item, all issued at once and joined with asyncio.gather.
    - Each lookup has its own timeout; any failure yields default metadata
      flagged `degraded` instead of failing the request.
    - `max_concurrency` caps in-flight lookups (None = unbounded).
    - Successful lookups are written to the injected cache; degraded ones are not.
    """

    def __init__(
        self,
        catalog: CatalogLookup,
        cache: MetadataCache | None = None,
        *,
        timeout_sec: float = LOOKUP_TIMEOUT_SEC,
        max_concurrency: int | None = None,
        cache_ttl_sec: int = METADATA_CACHE_TTL_SEC,
    ):
        self.catalog = catalog
        self.cache = cache
        self.timeout_sec = timeout_sec
        self.cache_ttl_sec = cache_ttl_sec
        self._semaphore = (
            asyncio.Semaphore(max_concurrency) if max_concurrency else None
        )

    async def enrich(
        self, items: Iterable[TrackedItem]
    ) -> dict[ItemKey, EnrichedItem]:
        unique: dict[ItemKey, TrackedItem] = {}
        for it in items:
            unique.setdefault(it.key, it)
        if not unique:
            return {}

        keys = list(unique)
        results = await asyncio.gather(*(self._enrich_one(unique[k]) for k in keys))
        enriched = dict(zip(keys, results))

        degraded = sum(1 for e in results if e.degraded)
        if degraded:
            log.warning(
                "Metadata enrichment degraded for %d/%d items", degraded, len(keys)
            )
        return enriched

    async def _enrich_one(self, item: TrackedItem) -> EnrichedItem:
        cache_key = metadata_cache_key(item.media_type, item.media_id)
        cached = await self._cache_get(cache_key)
        if cached is not None:
            return EnrichedItem(item=item, metadata=cached)

        try:
            metadata = await self._lookup(item)
        except asyncio.TimeoutError:
            log.warning(
                "Catalog lookup timed out after %.1fs: %s/%s",
                self.timeout_sec,
                item.media_type,
                item.media_id,
            )
            return self._degraded(item)
        except CatalogLookupError as e:
            log.warning("Catalog lookup failed: %s", e)
            return self._degraded(item)
        except Exception:
            log.warning(
                "Unexpected catalog error for %s/%s",
                item.media_type,
                item.media_id,
                exc_info=True,
            )
            return self._degraded(item)

        await self._cache_set(cache_key, metadata)
        return EnrichedItem(item=item, metadata=metadata)

    async def _lookup(self, item: TrackedItem) -> CatalogMetadata:
        if self._semaphore is None:
            return await self._timed_fetch(item)
        async with self._semaphore:
            return await self._timed_fetch(item)

    async def _timed_fetch(self, item: TrackedItem) -> CatalogMetadata:
        return await asyncio.wait_for(
            self.catalog.fetch_media_details(item.media_type, item.media_id),
            timeout=self.timeout_sec,
        )

    @staticmethod
    def _degraded(item: TrackedItem) -> EnrichedItem:
        return EnrichedItem(item=item, metadata=CatalogMetadata(), degraded=True)

    async def _cache_get(self, key: str) -> CatalogMetadata | None:
        if self.cache is None:
            return None
        try:
            raw = await self.cache.get(key)
        except Exception:
            log.warning("Metadata cache read failed for %s", key, exc_info=True)
            return None
        if not raw:
            return None
        try:
            return CatalogMetadata.from_dict(raw)
        except (TypeError, ValueError):
            await self._cache_expire(key)
            return None

    async def _cache_set(self, key: str, metadata: CatalogMetadata) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.set(key, metadata.to_dict(), ttl_sec=self.cache_ttl_sec)
        except Exception:
            log.warning("Metadata cache write failed for %s", key, exc_info=True)

    async def _cache_expire(self, key: str) -> None:
        try:
            await self.cache.expire(key)  # type: ignore[union-attr]
        except Exception:
            log.warning("Metadata cache expire failed for %s", key, exc_info=True)
