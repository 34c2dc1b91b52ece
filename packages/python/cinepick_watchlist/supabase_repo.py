from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, Sequence

from anyio import to_thread
from postgrest.exceptions import APIError as PostgrestAPIError

from cinepick_core.errors import map_pgrest
from cinepick_core.types import ListStatus

from .schemas import TrackedItem

TABLE = "user_watchlist"
BUMP_RPC = "increment_recommendation_count"
COLUMNS = (
    "id,user_id,media_id,media_type,status,rating,title,vote_average,"
    "added_at,recommendation_count,last_recommended_at"
)


def _row_to_item(row: dict) -> TrackedItem:
    return TrackedItem(**row)


class SupabaseTrackedItemRepo:
    def __init__(self, client):
        self.client = client

    # ---------- Async facade (runs sync work in threadpool) ----------
    async def list_by_statuses(
        self, user_id: str, statuses: Iterable[ListStatus]
    ) -> Sequence[TrackedItem]:
        return await to_thread.run_sync(
            self._list_by_statuses_sync, user_id, list(statuses)
        )

    async def bump_recommendation(
        self,
        user_id: str,
        media_id: int,
        media_type: str,
        at: datetime | None = None,
    ) -> None:
        await to_thread.run_sync(
            self._bump_recommendation_sync, user_id, media_id, media_type, at
        )

    # ---------- Private sync implementations ----------
    def _list_by_statuses_sync(
        self, user_id: str, statuses: list[ListStatus]
    ) -> Sequence[TrackedItem]:
        if not statuses:
            return []
        status_values = sorted({s.value for s in statuses})
        try:
            res = (
                self.client.table(TABLE)
                .select(COLUMNS)
                .eq("user_id", user_id)
                .in_("status", status_values)
                .is_("deleted_at", None)
                .execute()
            )
        except PostgrestAPIError as e:
            raise map_pgrest(e)
        return [_row_to_item(r) for r in (res.data or [])]

    def _bump_recommendation_sync(
        self,
        user_id: str,
        media_id: int,
        media_type: str,
        at: datetime | None,
    ) -> None:
        # RPC does `set recommendation_count = recommendation_count + 1` in one UPDATE
        at = at or datetime.now(timezone.utc)
        try:
            (
                self.client.rpc(
                    BUMP_RPC,
                    {
                        "p_user_id": user_id,
                        "p_media_id": media_id,
                        "p_media_type": media_type,
                        "p_at": at.isoformat(),
                    },
                ).execute()
            )
        except PostgrestAPIError as e:
            raise map_pgrest(e)
