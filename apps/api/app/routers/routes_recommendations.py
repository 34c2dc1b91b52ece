import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.deps.deps_recommendation import (
    get_feedback_service,
    get_recommendation_service,
)
from app.deps.supabase_client import get_current_user_id
from app.schemas import RecommendationActionRequest, RecommendationActionResponse
from cinepick_core.errors import Forbidden, InvalidAction, NotFound
from cinepick_recommendation.feedback_service import FeedbackService
from cinepick_recommendation.filters import parse_filter_params
from cinepick_recommendation.recommend_service import RecommendationService
from cinepick_recommendation.schemas import RecommendationResult, SelectionEvent

router = APIRouter(prefix="/recommendations", tags=["recommendations"])

log = logging.getLogger(__name__)


# ---- Random pick (declare BEFORE `/{event_id}` to avoid route shadowing) ----
@router.get("/random", response_model=RecommendationResult)
async def random_recommendation(
    types: str | None = Query(None, examples=["movie,anime"]),
    lists: str | None = Query(None, examples=["want,watched"]),
    min_rating: str | None = Query(None, alias="minRating"),
    max_rating: str | None = Query(None, alias="maxRating"),
    year_from: str | None = Query(None, alias="yearFrom"),
    year_to: str | None = Query(None, alias="yearTo"),
    genres: str | None = Query(None, examples=["28,12"]),
    user_id: str = Depends(get_current_user_id),
    service: RecommendationService = Depends(get_recommendation_service),
):
    """
    Pick one title from the user's lists. Empty pools are answered with
    `success=false` and a distinct `outcome`, not an error status.
    """
    spec = parse_filter_params(
        types=types,
        lists=lists,
        min_rating=min_rating,
        max_rating=max_rating,
        year_from=year_from,
        year_to=year_to,
        genres=genres,
    )
    try:
        return await service.get_recommendation(user_id, spec)
    except Forbidden:
        raise HTTPException(status.HTTP_403_FORBIDDEN, "forbidden/ownership")
    except Exception:
        error_id = uuid.uuid4().hex[:12]
        log.exception("Random recommendation failed (error_id=%s)", error_id)
        raise HTTPException(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            f"Recommendation failed (error_id={error_id})",
        )


# ---- Feedback (accept / skip) ----
@router.post("/{event_id}/action", response_model=RecommendationActionResponse)
async def report_action(
    event_id: str,
    req: RecommendationActionRequest,
    user_id: str = Depends(get_current_user_id),
    service: FeedbackService = Depends(get_feedback_service),
):
    try:
        event = await service.record_action(user_id, event_id, req.action)
    except InvalidAction as e:
        raise HTTPException(status.HTTP_422_UNPROCESSABLE_ENTITY, str(e))
    except NotFound:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Not found")
    except Forbidden:
        raise HTTPException(status.HTTP_403_FORBIDDEN, "forbidden/ownership")
    return RecommendationActionResponse(event_id=event.id, action=event.action)


# ---- Get event by id ----
@router.get("/{event_id}", response_model=SelectionEvent)
async def get_event(
    event_id: str,
    user_id: str = Depends(get_current_user_id),
    service: FeedbackService = Depends(get_feedback_service),
):
    try:
        return await service.get(user_id, event_id)
    except NotFound:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Not found")
    except Forbidden:
        raise HTTPException(status.HTTP_403_FORBIDDEN, "forbidden/ownership")
