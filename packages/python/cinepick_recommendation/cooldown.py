from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

from cinepick_core.config import COOLDOWN_WINDOW
from cinepick_core.types import ItemKey, item_key

from .types import ShownEventSource


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CooldownPolicy:
    """
    Anti-repeat window. A title shown to the user at time t is excluded for
    requests before t + window and eligible again from t + window on,
    whichever list it sits in now.
    """

    def __init__(
        self,
        events: ShownEventSource,
        *,
        window: timedelta = COOLDOWN_WINDOW,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.events = events
        self.window = window
        self._clock = clock

    def window_start(self) -> datetime:
        return self._clock() - self.window

    async def exclusion_set(self, user_id: str) -> set[ItemKey]:
        since = self.window_start()
        shown = await self.events.list_shown_since(user_id, since)
        return {
            item_key(e.media_id, e.media_type) for e in shown if e.shown_at > since
        }
