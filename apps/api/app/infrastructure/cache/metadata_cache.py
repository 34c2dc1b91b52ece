from __future__ import annotations

import json
import logging
from typing import Any

from redis.asyncio import Redis  # injected client type

from cinepick_core.config import METADATA_CACHE_TTL_SEC
from cinepick_tmdb.cache import InMemoryMetadataCache, MetadataCache

from .redis_infra import make_redis_client, ping

log = logging.getLogger(__name__)


class RedisMetadataCache:
    """
    Redis-backed catalog metadata cache. One key per (media_type, media_id).
    Key:   {namespace}{media_type}:{media_id}
    Value: JSON string of CatalogMetadata fields.
    """

    def __init__(
        self,
        *,
        client: Redis,
        namespace: str = "cinepick:meta:",
        absolute_ttl_sec: int = METADATA_CACHE_TTL_SEC,
    ) -> None:
        # client must be created with decode_responses=True
        self._r = client
        self._ns = namespace
        self._default_ttl = int(absolute_ttl_sec)

    def _key(self, key: str) -> str:
        return f"{self._ns}{key}"

    async def get(self, key: str) -> dict[str, Any] | None:
        raw = await self._r.get(self._key(key))
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except ValueError:
            return None
        return data if isinstance(data, dict) else None

    async def set(
        self, key: str, value: dict[str, Any], ttl_sec: int | None = None
    ) -> None:
        ttl = int(ttl_sec or self._default_ttl)
        payload = json.dumps(value, ensure_ascii=False, separators=(",", ":"))
        await self._r.set(self._key(key), payload, ex=ttl)

    async def expire(self, key: str) -> None:
        await self._r.delete(self._key(key))

    async def ping(self) -> bool:
        return await ping(self._r)

    async def aclose(self) -> None:
        await self._r.aclose()


def make_metadata_cache(
    *,
    use_redis: bool,
    redis_url: str | None,
    namespace: str,
    absolute_ttl_sec: int,
) -> MetadataCache:
    if use_redis and redis_url:
        return RedisMetadataCache(
            client=make_redis_client(redis_url),
            namespace=namespace,
            absolute_ttl_sec=absolute_ttl_sec,
        )
    if use_redis:
        log.warning(
            "use_redis_metadata_cache is set but REDIS_URL is empty; using in-memory cache"
        )
    return InMemoryMetadataCache(default_ttl_sec=absolute_ttl_sec)
