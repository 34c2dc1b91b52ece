from __future__ import annotations

from pydantic import BaseModel

from cinepick_core.types import SelectionAction


class RecommendationActionRequest(BaseModel):
    action: SelectionAction


class RecommendationActionResponse(BaseModel):
    success: bool = True
    event_id: str
    action: SelectionAction
