from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Protocol, Sequence, runtime_checkable

from cinepick_core.types import ItemKey, ListStatus, ShownEvent
from cinepick_tmdb.metadata import CatalogMetadata
from cinepick_watchlist.schemas import TrackedItem


@dataclass(frozen=True)
class EnrichedItem:
    """TrackedItem joined with catalog metadata for the duration of one request."""

    item: TrackedItem
    metadata: CatalogMetadata
    degraded: bool = False  # catalog lookup failed, metadata are defaults

    @property
    def key(self) -> ItemKey:
        return self.item.key

    @property
    def media_type(self) -> str:
        return self.item.media_type

    @property
    def genre_ids(self) -> tuple[int, ...]:
        return self.metadata.genre_ids

    @property
    def restricted(self) -> bool:
        return self.metadata.restricted

    def restricted_for(self, restrict: bool) -> bool:
        """Whether this item must be withheld from a user under the given age policy."""
        if not restrict:
            return False
        # adult flag is unknown for degraded items
        return self.metadata.restricted or self.degraded


@runtime_checkable
class CatalogLookup(Protocol):
    async def fetch_media_details(
        self, media_type: str, media_id: int
    ) -> CatalogMetadata: ...


class TrackedItemSource(Protocol):
    async def list_by_statuses(
        self, user_id: str, statuses: Iterable[ListStatus]
    ) -> Sequence[TrackedItem]: ...

    async def bump_recommendation(
        self,
        user_id: str,
        media_id: int,
        media_type: str,
        at: datetime | None = None,
    ) -> None: ...


class ShownEventSource(Protocol):
    async def list_shown_since(
        self, user_id: str, since: datetime
    ) -> Sequence[ShownEvent]: ...


class AgePolicy(Protocol):
    async def should_restrict(self, user_id: str) -> bool: ...
