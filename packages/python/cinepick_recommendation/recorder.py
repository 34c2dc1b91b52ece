from __future__ import annotations

import logging
from datetime import datetime

from cinepick_core.config import ALGORITHM_TAG

from .events_repo import SupabaseSelectionEventRepo
from .schemas import RecommendationContext, SelectionEventCreate
from .selector import Selection
from .types import TrackedItemSource

log = logging.getLogger(__name__)


class SelectionRecorder:
    """
    Persists the shown event and bumps the tracked item's counters.
    Write failures are logged and never abort a successful selection.
    """

    def __init__(
        self,
        events: SupabaseSelectionEventRepo,
        tracked: TrackedItemSource,
        *,
        algorithm: str = ALGORITHM_TAG,
    ):
        self.events = events
        self.tracked = tracked
        self.algorithm = algorithm

    async def record(
        self,
        *,
        user_id: str,
        selection: Selection,
        context: RecommendationContext,
        shown_at: datetime,
    ) -> str | None:
        item = selection.item.item
        event = SelectionEventCreate(
            user_id=user_id,
            media_id=item.media_id,
            media_type=item.media_type,
            algorithm=self.algorithm,
            shown_at=shown_at,
            context=context.selection.model_dump(mode="json"),
            filters_snapshot=context.filters_snapshot.model_dump(mode="json"),
            pool_metrics=context.pool_metrics.model_dump(mode="json"),
            temporal_context=context.temporal_context.model_dump(mode="json"),
            ml_features=context.ml_features.model_dump(mode="json"),
        )

        event_id: str | None = None
        try:
            event_id = await self.events.insert(event)
        except Exception:
            log.exception(
                "Failed to record selection event (user=%s, %s/%s)",
                user_id,
                item.media_type,
                item.media_id,
            )

        try:
            await self.tracked.bump_recommendation(
                user_id, item.media_id, item.media_type, at=shown_at
            )
        except Exception:
            log.exception(
                "Failed to bump recommendation counter (user=%s, %s/%s)",
                user_id,
                item.media_type,
                item.media_id,
            )
        return event_id
