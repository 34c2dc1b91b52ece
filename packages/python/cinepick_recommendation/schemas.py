from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from cinepick_core.config import ALGORITHM_TAG, RECOMMENDATION_SOURCE
from cinepick_core.types import SelectionAction


class AdditionalFilters(BaseModel):
    min_rating: float | None = None
    max_rating: float | None = None
    year_from: int | None = None
    year_to: int | None = None
    selected_genres: list[int] | None = None


class FiltersSnapshot(BaseModel):
    """Replayable record of what the user asked for."""

    content_types: dict[str, bool]
    lists: dict[str, bool]
    additional_filters: AdditionalFilters = Field(default_factory=AdditionalFilters)


class PoolMetrics(BaseModel):
    initial_count: int = 0
    after_type_filter: int = 0
    after_cooldown: int = 0
    after_additional_filters: int = 0
    rating_distribution: dict[int, int] = Field(default_factory=dict)
    degraded_count: int = 0
    cooldown_degraded: bool = False  # shown-event read failed, nothing excluded


class TemporalContext(BaseModel):
    hour_of_day: int
    day_of_week: int  # 0 = Sunday
    is_weekend: bool


class MLFeatures(BaseModel):
    """
    Feature surface for a future ranking model. Only novelty and
    predicted_rating are derived from data; the rest are fixed placeholders.
    """

    similarity_score: float
    novelty_score: float
    diversity_score: float
    predicted_acceptance_probability: float
    predicted_rating: float | None = None


class SelectionContext(BaseModel):
    source: str = RECOMMENDATION_SOURCE
    position: int
    candidates_count: int
    retried: bool = False
    user_status: str | None = None


class RecommendationContext(BaseModel):
    filters_snapshot: FiltersSnapshot
    pool_metrics: PoolMetrics
    temporal_context: TemporalContext
    ml_features: MLFeatures
    selection: SelectionContext


class SelectionEventCreate(BaseModel):
    user_id: str
    media_id: int
    media_type: str
    algorithm: str = ALGORITHM_TAG
    action: SelectionAction = SelectionAction.SHOWN
    shown_at: datetime
    context: dict[str, Any] = Field(default_factory=dict)
    filters_snapshot: dict[str, Any] = Field(default_factory=dict)
    pool_metrics: dict[str, Any] = Field(default_factory=dict)
    temporal_context: dict[str, Any] = Field(default_factory=dict)
    ml_features: dict[str, Any] = Field(default_factory=dict)


class SelectionEvent(SelectionEventCreate):
    id: str
    action_at: datetime | None = None


class RecommendationOutcome(str, Enum):
    OK = "ok"
    LISTS_EMPTY = "lists_empty"
    NO_CANDIDATES = "no_candidates"
    NO_ELIGIBLE = "no_eligible"


OUTCOME_MESSAGES: dict[RecommendationOutcome, str] = {
    RecommendationOutcome.OK: "Recommendation ready",
    RecommendationOutcome.LISTS_EMPTY: (
        "The selected lists are empty. Add titles to your want-to-watch list "
        "or mark some as watched."
    ),
    RecommendationOutcome.NO_CANDIDATES: (
        "No recommendations match the current filters. Try changing them."
    ),
    RecommendationOutcome.NO_ELIGIBLE: (
        "No eligible recommendations: every remaining title is age-restricted."
    ),
}


class RecommendedItem(BaseModel):
    """Catalog-shaped item returned to the UI."""

    id: int
    media_type: str  # display kind: movie | tv | anime
    stored_media_type: str  # movie | tv, what TMDB routes need
    title: str | None = None
    poster_path: str | None = None
    vote_average: float | None = None
    vote_count: int = 0
    release_date: str | None = None
    overview: str = ""
    genres: list[dict[str, Any]] = Field(default_factory=list)
    original_language: str | None = None


class RecommendationResult(BaseModel):
    success: bool
    outcome: RecommendationOutcome
    message: str
    item: RecommendedItem | None = None
    event_id: str | None = None
    pool_metrics: PoolMetrics | None = None
    user_status: str | None = None
    user_rating: float | None = None

    @classmethod
    def failure(
        cls,
        outcome: RecommendationOutcome,
        pool_metrics: PoolMetrics | None = None,
    ) -> "RecommendationResult":
        return cls(
            success=False,
            outcome=outcome,
            message=OUTCOME_MESSAGES[outcome],
            pool_metrics=pool_metrics,
        )
