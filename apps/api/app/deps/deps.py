from typing import Any, cast
from dataclasses import dataclass

from fastapi import HTTPException, Request, status

from cinepick_recommendation.types import CatalogLookup
from cinepick_tmdb.cache import MetadataCache


def _get_state_attr(request: Request, name: str, error_detail: str) -> Any:
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=error_detail,
        )
    return value


def get_settings(request: Request) -> Any:
    return _get_state_attr(request, "settings", "Settings not initialized")


def get_catalog(request: Request) -> CatalogLookup:
    return cast(
        CatalogLookup,
        _get_state_attr(request, "catalog", "Catalog client not initialized"),
    )


def get_metadata_cache(request: Request) -> MetadataCache:
    return cast(
        MetadataCache,
        _get_state_attr(request, "metadata_cache", "Metadata cache not initialized"),
    )


@dataclass(frozen=True)
class SupabaseCreds:
    url: str
    api_key: str


def get_supabase_creds(request: Request) -> SupabaseCreds:
    return SupabaseCreds(
        url=getattr(request.app.state, "supabase_url", "") or "",
        api_key=getattr(request.app.state, "supabase_api_key", "") or "",
    )
