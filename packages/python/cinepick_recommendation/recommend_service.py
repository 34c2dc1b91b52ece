from __future__ import annotations

import logging
import random
from datetime import datetime
from typing import Callable

from .classifier import classify
from .context import build_context
from .cooldown import utcnow
from .enricher import MetadataEnricher
from .filters import FilterSpec
from .pipeline import FilterPipeline, join_lists
from .recorder import SelectionRecorder
from .schemas import (
    OUTCOME_MESSAGES,
    RecommendationOutcome,
    RecommendationResult,
    RecommendedItem,
)
from .selector import Selection, select_candidate
from .types import AgePolicy, TrackedItemSource

log = logging.getLogger(__name__)


def to_recommended_item(selection: Selection) -> RecommendedItem:
    enriched = selection.item
    tracked, meta = enriched.item, enriched.metadata
    return RecommendedItem(
        id=tracked.media_id,
        media_type=classify(enriched).value,
        stored_media_type=tracked.media_type,
        title=meta.title or tracked.title,
        poster_path=meta.poster_path,
        vote_average=(
            meta.vote_average if meta.vote_average is not None else tracked.vote_average
        ),
        vote_count=meta.vote_count,
        release_date=meta.release_date,
        overview=meta.overview,
        genres=[dict(g) for g in meta.genres],
        original_language=meta.original_language,
    )


class RecommendationService:
    """
    GetRecommendation: read lists -> enrich -> filter -> select -> record.

    Only a failed tracked-item read propagates; every other failure degrades
    or turns into a `success=False` outcome.
    """

    def __init__(
        self,
        *,
        tracked: TrackedItemSource,
        enricher: MetadataEnricher,
        pipeline: FilterPipeline,
        age_policy: AgePolicy,
        recorder: SelectionRecorder,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.tracked = tracked
        self.enricher = enricher
        self.pipeline = pipeline
        self.age_policy = age_policy
        self.recorder = recorder
        self.rng = rng
        self._clock = clock

    async def get_recommendation(
        self, user_id: str, spec: FilterSpec
    ) -> RecommendationResult:
        tracked = await self.tracked.list_by_statuses(user_id, spec.lists)
        pool = join_lists(tracked, spec)
        if not pool:
            log.info(
                "No tracked items in %s for user %s",
                sorted(s.value for s in spec.lists),
                user_id,
            )
            return RecommendationResult.failure(RecommendationOutcome.LISTS_EMPTY)

        # only the joined pool is enriched
        enriched = await self.enricher.enrich(pool)
        result = await self.pipeline.run(user_id, pool, enriched, spec)
        if result.exhausted:
            return RecommendationResult.failure(
                RecommendationOutcome.NO_CANDIDATES, result.metrics
            )

        restrict = await self.age_policy.should_restrict(user_id)
        selection = select_candidate(result.candidates, restrict=restrict, rng=self.rng)
        if selection is None:
            log.info(
                "All %d candidates restricted for user %s",
                len(result.candidates),
                user_id,
            )
            return RecommendationResult.failure(
                RecommendationOutcome.NO_ELIGIBLE, result.metrics
            )

        now = self._clock()
        context = build_context(
            spec=spec,
            metrics=result.metrics,
            selection=selection,
            candidates_count=len(result.candidates),
            now=now,
        )
        event_id = await self.recorder.record(
            user_id=user_id, selection=selection, context=context, shown_at=now
        )

        chosen = selection.item.item
        return RecommendationResult(
            success=True,
            outcome=RecommendationOutcome.OK,
            message=OUTCOME_MESSAGES[RecommendationOutcome.OK],
            item=to_recommended_item(selection),
            event_id=event_id,
            user_status=chosen.status.value,
            user_rating=chosen.rating,
        )
