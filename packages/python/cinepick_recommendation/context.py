from __future__ import annotations

from datetime import datetime, timezone

from cinepick_core.config import (
    ACCEPTANCE_PLACEHOLDER,
    DIVERSITY_PLACEHOLDER,
    NOVELTY_HORIZON_DAYS,
    SIMILARITY_PLACEHOLDER,
)
from cinepick_core.types import ContentKind
from cinepick_watchlist.schemas import TrackedItem

from .filters import SELECTABLE_LISTS, FilterSpec
from .schemas import (
    AdditionalFilters,
    FiltersSnapshot,
    MLFeatures,
    PoolMetrics,
    RecommendationContext,
    SelectionContext,
    TemporalContext,
)
from .selector import Selection


def _clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


def build_filters_snapshot(spec: FilterSpec) -> FiltersSnapshot:
    return FiltersSnapshot(
        content_types={k.value: k in spec.kinds for k in ContentKind},
        lists={s.value: s in spec.lists for s in sorted(SELECTABLE_LISTS, key=lambda s: s.value)},
        additional_filters=AdditionalFilters(
            min_rating=spec.min_rating,
            max_rating=spec.max_rating,
            year_from=spec.year_from,
            year_to=spec.year_to,
            selected_genres=sorted(spec.genres) if spec.genres else None,
        ),
    )


def build_temporal_context(now: datetime) -> TemporalContext:
    return TemporalContext(
        hour_of_day=now.hour,
        day_of_week=now.isoweekday() % 7,
        is_weekend=now.weekday() >= 5,
    )


def novelty_score(added_at: datetime | None, now: datetime) -> float:
    if added_at is None:
        return 1.0
    if added_at.tzinfo is None:
        added_at = added_at.replace(tzinfo=timezone.utc)
    age_days = (now - added_at).total_seconds() / 86400
    return _clamp01(1.0 - min(1.0, age_days / NOVELTY_HORIZON_DAYS))


def build_ml_features(item: TrackedItem, now: datetime) -> MLFeatures:
    return MLFeatures(
        similarity_score=SIMILARITY_PLACEHOLDER,
        novelty_score=novelty_score(item.added_at, now),
        diversity_score=DIVERSITY_PLACEHOLDER,
        predicted_acceptance_probability=ACCEPTANCE_PLACEHOLDER,
        predicted_rating=item.rating,
    )


def build_context(
    *,
    spec: FilterSpec,
    metrics: PoolMetrics,
    selection: Selection,
    candidates_count: int,
    now: datetime,
) -> RecommendationContext:
    tracked = selection.item.item
    return RecommendationContext(
        filters_snapshot=build_filters_snapshot(spec),
        pool_metrics=metrics,
        temporal_context=build_temporal_context(now),
        ml_features=build_ml_features(tracked, now),
        selection=SelectionContext(
            position=selection.position,
            candidates_count=candidates_count,
            retried=selection.retried,
            user_status=tracked.status.value,
        ),
    )
