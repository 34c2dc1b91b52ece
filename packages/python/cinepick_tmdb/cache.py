from __future__ import annotations

import time
from typing import Any, Callable, Protocol, runtime_checkable


def metadata_cache_key(media_type: str, media_id: int) -> str:
    return f"{media_type}:{media_id}"


@runtime_checkable
class MetadataCache(Protocol):
    """Catalog metadata cache. Values are JSON-compatible dicts."""

    async def get(self, key: str) -> dict[str, Any] | None: ...

    async def set(
        self, key: str, value: dict[str, Any], ttl_sec: int | None = None
    ) -> None: ...

    async def expire(self, key: str) -> None: ...


class InMemoryMetadataCache:
    """
    Process-local cache with absolute TTL per key, bounded to `max_entries`.
    Used in tests and when Redis is not configured.
    """

    def __init__(
        self,
        *,
        default_ttl_sec: int = 24 * 3600,
        max_entries: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._data: dict[str, tuple[float, dict[str, Any]]] = {}
        self._default_ttl = int(default_ttl_sec)
        self._max_entries = max(1, int(max_entries))
        self._clock = clock

    async def get(self, key: str) -> dict[str, Any] | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            self._data.pop(key, None)
            return None
        return dict(value)

    async def set(
        self, key: str, value: dict[str, Any], ttl_sec: int | None = None
    ) -> None:
        ttl = int(ttl_sec or self._default_ttl)
        now = self._clock()
        self._data.pop(key, None)
        if len(self._data) >= self._max_entries:
            self._evict(now)
        self._data[key] = (now + ttl, dict(value))

    async def expire(self, key: str) -> None:
        self._data.pop(key, None)

    def _evict(self, now: float) -> None:
        """Drop expired entries; if still full, drop the oldest insertions."""
        for k in [k for k, (exp, _) in self._data.items() if now >= exp]:
            del self._data[k]
        while len(self._data) >= self._max_entries:
            del self._data[next(iter(self._data))]

    def __len__(self) -> int:
        return len(self._data)
