from __future__ import annotations

from datetime import datetime, timezone
from typing import Sequence

from anyio import to_thread
from postgrest.exceptions import APIError as PostgrestAPIError

from cinepick_core.errors import Conflict, NotFound, map_pgrest
from cinepick_core.types import SelectionAction, ShownEvent

from .schemas import SelectionEvent, SelectionEventCreate

TABLE = "recommendation_events"


def _parse_ts(value) -> datetime:
    if isinstance(value, datetime):
        ts = value
    else:
        s = str(value)
        if s.endswith("Z"):
            s = s[:-1] + "+00:00"
        ts = datetime.fromisoformat(s)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _row_to_event(row: dict) -> SelectionEvent:
    return SelectionEvent(**row)


class SupabaseSelectionEventRepo:
    """Append-only log of shown recommendations; only `action` is mutated later."""

    def __init__(self, client):
        self.client = client

    # ---------- Async facade ----------
    async def insert(self, event: SelectionEventCreate) -> str:
        return await to_thread.run_sync(self._insert_sync, event)

    async def list_shown_since(
        self, user_id: str, since: datetime
    ) -> Sequence[ShownEvent]:
        return await to_thread.run_sync(self._list_shown_since_sync, user_id, since)

    async def get(self, user_id: str, event_id: str) -> SelectionEvent:
        return await to_thread.run_sync(self._get_sync, user_id, event_id)

    async def update_action(
        self,
        user_id: str,
        event_id: str,
        action: SelectionAction,
        at: datetime | None = None,
    ) -> SelectionEvent:
        return await to_thread.run_sync(
            self._update_action_sync, user_id, event_id, action, at
        )

    # ---------- Private sync impls ----------
    def _insert_sync(self, event: SelectionEventCreate) -> str:
        payload = event.model_dump(mode="json")
        try:
            res = (
                self.client.table(TABLE)
                .insert(payload, returning="representation")
                .execute()
            )
        except PostgrestAPIError as e:
            raise map_pgrest(e)
        rows = res.data or []
        if not rows or not rows[0].get("id"):
            raise Conflict("selection event not created")
        return str(rows[0]["id"])

    def _list_shown_since_sync(
        self, user_id: str, since: datetime
    ) -> Sequence[ShownEvent]:
        try:
            res = (
                self.client.table(TABLE)
                .select("media_id,media_type,shown_at")
                .eq("user_id", user_id)
                .gt("shown_at", since.isoformat())
                .execute()
            )
        except PostgrestAPIError as e:
            raise map_pgrest(e)
        return [
            ShownEvent(
                media_id=int(r["media_id"]),
                media_type=r["media_type"],
                shown_at=_parse_ts(r["shown_at"]),
            )
            for r in (res.data or [])
        ]

    def _get_sync(self, user_id: str, event_id: str) -> SelectionEvent:
        try:
            res = (
                self.client.table(TABLE)
                .select("*")
                .eq("id", event_id)
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            )
        except PostgrestAPIError as e:
            raise map_pgrest(e)
        if not res.data:
            raise NotFound("selection event not found")
        return _row_to_event(res.data[0])

    def _update_action_sync(
        self,
        user_id: str,
        event_id: str,
        action: SelectionAction,
        at: datetime | None,
    ) -> SelectionEvent:
        at = at or datetime.now(timezone.utc)
        try:
            res = (
                self.client.table(TABLE)
                .update(
                    {"action": action.value, "action_at": at.isoformat()},
                    returning="representation",
                )
                .eq("id", event_id)
                .eq("user_id", user_id)
                .execute()
            )
        except PostgrestAPIError as e:
            raise map_pgrest(e)
        if not res.data:
            raise NotFound("selection event not found")
        return _row_to_event(res.data[0])
