from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Sequence

from cinepick_core.types import ItemKey
from cinepick_watchlist.schemas import TrackedItem

from .classifier import classify
from .cooldown import CooldownPolicy
from .filters import FilterSpec
from .schemas import PoolMetrics
from .types import EnrichedItem

log = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    candidates: list[EnrichedItem]
    metrics: PoolMetrics
    pool: list[TrackedItem] = field(default_factory=list)  # after the list join

    @property
    def exhausted(self) -> bool:
        return not self.candidates


def rating_distribution(items: Iterable[TrackedItem]) -> dict[int, int]:
    """Histogram of floor(catalog rating) over the pool; unrated items are skipped."""
    dist: dict[int, int] = {}
    for it in items:
        if it.vote_average is None:
            continue
        bucket = math.floor(it.vote_average)
        dist[bucket] = dist.get(bucket, 0) + 1
    return dict(sorted(dist.items()))


def release_year(date_str: str | None) -> int | None:
    if not date_str:
        return None
    head = date_str.strip().split("-")[0]
    if len(head) != 4 or not head.isdigit():
        return None
    return int(head)


# ---------- Stages ----------
def join_lists(items: Iterable[TrackedItem], spec: FilterSpec) -> list[TrackedItem]:
    return [it for it in items if it.status in spec.lists]


def filter_by_kind(items: Iterable[EnrichedItem], spec: FilterSpec) -> list[EnrichedItem]:
    return [e for e in items if classify(e) in spec.kinds]


def filter_by_cooldown(
    items: Iterable[EnrichedItem], excluded: set[ItemKey]
) -> list[EnrichedItem]:
    return [e for e in items if e.key not in excluded]


def passes_rating(e: EnrichedItem, spec: FilterSpec) -> bool:
    if not spec.rating_filter_active:
        return True
    # no user rating (e.g. want-to-watch) counts as 0
    rating = e.item.rating if e.item.rating is not None else 0.0
    if spec.min_rating is not None and rating < spec.min_rating:
        return False
    if spec.max_rating is not None and rating > spec.max_rating:
        return False
    return True


def passes_year(e: EnrichedItem, spec: FilterSpec) -> bool:
    if not spec.year_filter_active:
        return True
    year = release_year(e.metadata.release_date)
    if year is None:
        return False
    if spec.year_from is not None and year < spec.year_from:
        return False
    if spec.year_to is not None and year > spec.year_to:
        return False
    return True


def passes_genres(e: EnrichedItem, spec: FilterSpec) -> bool:
    if not spec.genre_filter_active:
        return True
    return bool(set(e.genre_ids) & spec.genres)  # type: ignore[operator]


def filter_by_attributes(
    items: Iterable[EnrichedItem], spec: FilterSpec
) -> list[EnrichedItem]:
    return [
        e
        for e in items
        if passes_rating(e, spec) and passes_year(e, spec) and passes_genres(e, spec)
    ]


class FilterPipeline:
    """
    list join -> content kind -> cooldown -> rating/year/genre.
    Counts are recorded after each stage; once a stage empties the pool the
    remaining stages are skipped and their counts stay 0.
    """

    def __init__(self, cooldown: CooldownPolicy):
        self.cooldown = cooldown

    async def run(
        self,
        user_id: str,
        tracked: Sequence[TrackedItem],
        enriched: Mapping[ItemKey, EnrichedItem],
        spec: FilterSpec,
    ) -> PipelineResult:
        pool = join_lists(tracked, spec)
        metrics = PoolMetrics(
            initial_count=len(pool),
            rating_distribution=rating_distribution(pool),
            degraded_count=sum(
                1 for it in pool if it.key in enriched and enriched[it.key].degraded
            ),
        )
        candidates = [enriched[it.key] for it in pool if it.key in enriched]

        candidates = filter_by_kind(candidates, spec)
        metrics.after_type_filter = len(candidates)
        if not candidates:
            return PipelineResult(candidates, metrics, pool)

        try:
            excluded = await self.cooldown.exclusion_set(user_id)
        except Exception:
            # shown-event store unavailable: no exclusions for this request
            log.exception("Cooldown lookup failed for user %s", user_id)
            excluded = set()
            metrics.cooldown_degraded = True
        candidates = filter_by_cooldown(candidates, excluded)
        metrics.after_cooldown = len(candidates)
        if not candidates:
            return PipelineResult(candidates, metrics, pool)

        candidates = filter_by_attributes(candidates, spec)
        metrics.after_additional_filters = len(candidates)

        log.debug(
            "Pool for user %s: initial=%d type=%d cooldown=%d attrs=%d",
            user_id,
            metrics.initial_count,
            metrics.after_type_filter,
            metrics.after_cooldown,
            metrics.after_additional_filters,
        )
        return PipelineResult(candidates, metrics, pool)
