from __future__ import annotations

import logging
from datetime import date
from typing import Callable

from .age import should_filter_adult
from .user_settings_repo import SupabaseUserSettingsRepo

log = logging.getLogger(__name__)


class UserSettingsService:
    def __init__(
        self,
        repo: SupabaseUserSettingsRepo,
        *,
        today: Callable[[], date] = date.today,
    ):
        self.repo = repo
        self._today = today

    async def should_restrict(self, user_id: str) -> bool:
        """Age policy: must adult content be excluded for this user?"""
        try:
            birth_date = await self.repo.get_birth_date(user_id)
        except Exception:
            # unknown age is treated as under age
            log.warning("Birth date lookup failed for user %s", user_id, exc_info=True)
            return True
        return should_filter_adult(birth_date, default=True, today=self._today())
