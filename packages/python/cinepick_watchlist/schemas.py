from datetime import datetime

from pydantic import BaseModel, Field

from cinepick_core.types import ItemKey, ListStatus, item_key


class TrackedItem(BaseModel):
    """One row of a user's watchlist, as the recommender reads it."""

    id: str
    user_id: str
    media_id: int
    media_type: str  # "movie" | "tv"
    status: ListStatus
    rating: float | None = Field(default=None, ge=0, le=10)  # user's own rating
    title: str | None = None
    vote_average: float | None = None  # denormalized catalog rating
    added_at: datetime | None = None
    recommendation_count: int = 0
    last_recommended_at: datetime | None = None

    @property
    def key(self) -> ItemKey:
        return item_key(self.media_id, self.media_type)
