from __future__ import annotations
from anyio import to_thread
from postgrest.exceptions import APIError as PostgrestAPIError

from cinepick_core.errors import map_pgrest

TABLE_PROFILES = "profiles"


class SupabaseUserSettingsRepo:
    def __init__(self, client):
        self.client = client

    # ---------- Async facade ----------
    async def get_birth_date(self, user_id: str) -> str | None:
        return await to_thread.run_sync(self._get_birth_date_sync, user_id)

    # ---------- Private sync impls ----------
    def _get_birth_date_sync(self, user_id: str) -> str | None:
        try:
            res = (
                self.client.table(TABLE_PROFILES)
                .select("birth_date")
                .eq("id", user_id)
                .limit(1)
                .execute()
            )
        except PostgrestAPIError as e:
            raise map_pgrest(e)
        rows = res.data or []
        if not rows:
            return None
        return rows[0].get("birth_date")
