from datetime import timedelta
from typing import Any

from fastapi import Depends

from app.deps.deps import get_catalog, get_metadata_cache, get_settings
from app.deps.supabase_client import get_supabase_client
from cinepick_recommendation.cooldown import CooldownPolicy
from cinepick_recommendation.enricher import MetadataEnricher
from cinepick_recommendation.events_repo import SupabaseSelectionEventRepo
from cinepick_recommendation.feedback_service import FeedbackService
from cinepick_recommendation.pipeline import FilterPipeline
from cinepick_recommendation.recommend_service import RecommendationService
from cinepick_recommendation.recorder import SelectionRecorder
from cinepick_recommendation.types import CatalogLookup
from cinepick_tmdb.cache import MetadataCache
from cinepick_user.settings.user_settings_repo import SupabaseUserSettingsRepo
from cinepick_user.settings.user_settings_service import UserSettingsService
from cinepick_watchlist.supabase_repo import SupabaseTrackedItemRepo


def get_recommendation_service(
    sb=Depends(get_supabase_client),
    settings: Any = Depends(get_settings),
    catalog: CatalogLookup = Depends(get_catalog),
    cache: MetadataCache = Depends(get_metadata_cache),
) -> RecommendationService:
    tracked = SupabaseTrackedItemRepo(sb)
    events = SupabaseSelectionEventRepo(sb)
    enricher = MetadataEnricher(
        catalog,
        cache,
        timeout_sec=settings.lookup_timeout_sec,
        max_concurrency=settings.enrich_max_concurrency,
        cache_ttl_sec=settings.metadata_cache_ttl_sec,
    )
    cooldown = CooldownPolicy(events, window=timedelta(days=settings.cooldown_days))
    return RecommendationService(
        tracked=tracked,
        enricher=enricher,
        pipeline=FilterPipeline(cooldown),
        age_policy=UserSettingsService(SupabaseUserSettingsRepo(sb)),
        recorder=SelectionRecorder(events, tracked),
    )


def get_feedback_service(sb=Depends(get_supabase_client)) -> FeedbackService:
    return FeedbackService(SupabaseSelectionEventRepo(sb))
