from __future__ import annotations

from cinepick_core.errors import InvalidAction
from cinepick_core.types import SelectionAction

from .events_repo import SupabaseSelectionEventRepo
from .schemas import SelectionEvent

FEEDBACK_ACTIONS = {SelectionAction.ACCEPTED, SelectionAction.SKIPPED}


class FeedbackService:
    """Accept/skip reports from the UI for a previously shown event."""

    def __init__(self, repo: SupabaseSelectionEventRepo):
        self.repo = repo

    async def record_action(
        self, user_id: str, event_id: str, action: str | SelectionAction
    ) -> SelectionEvent:
        try:
            parsed = SelectionAction(action)
        except ValueError:
            raise InvalidAction(f"unsupported action: {action}")
        if parsed not in FEEDBACK_ACTIONS:
            raise InvalidAction(f"unsupported action: {parsed.value}")
        return await self.repo.update_action(user_id, event_id, parsed)

    async def get(self, user_id: str, event_id: str) -> SelectionEvent:
        return await self.repo.get(user_id, event_id)
