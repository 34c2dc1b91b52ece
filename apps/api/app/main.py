import logging
import os
from contextlib import asynccontextmanager

from dotenv import find_dotenv, load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from pydantic_settings import BaseSettings, SettingsConfigDict

from cinepick_core.config import (
    COOLDOWN_DAYS,
    LOOKUP_TIMEOUT_SEC,
    METADATA_CACHE_TTL_SEC,
)
from cinepick_tmdb.tmdb_client import TMDBClient
from cinepick_tmdb.cache import InMemoryMetadataCache
from app.infrastructure.cache.metadata_cache import (
    RedisMetadataCache,
    make_metadata_cache,
)
from .routers import all_routers

log = logging.getLogger(__name__)


class Settings(BaseSettings):
    app_name: str = "Cinepick Recommendation API"
    log_level: str = "INFO"
    # credentials
    supabase_url: str | None = None
    supabase_api_key: str | None = None
    tmdb_api_key: str | None = None
    # catalog
    tmdb_timeout_sec: float = 10.0
    tmdb_max_connections: int = 15
    lookup_timeout_sec: float = LOOKUP_TIMEOUT_SEC
    enrich_max_concurrency: int | None = None
    # metadata cache config
    use_redis_metadata_cache: bool = False
    redis_url: str | None = None
    metadata_cache_namespace: str = "cinepick:meta:"
    metadata_cache_ttl_sec: int = METADATA_CACHE_TTL_SEC
    # selection policy
    cooldown_days: int = COOLDOWN_DAYS
    # env config
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


def _should_init_catalog() -> bool:
    flag = os.getenv("CINEPICK_SKIP_CATALOG_INIT", "")
    return flag.strip().lower() not in {"1", "true", "yes"}


def _init_catalog(app: FastAPI) -> None:
    settings = app.state.settings
    required = {
        "SUPABASE_URL": settings.supabase_url,
        "SUPABASE_API_KEY": settings.supabase_api_key,
        "TMDB_API_KEY": settings.tmdb_api_key,
    }
    missing = [
        name for name, value in required.items() if not (value and value.strip())
    ]
    if missing:
        raise RuntimeError(
            "Missing API keys in environment: " + ", ".join(sorted(missing))
        )

    app.state.catalog = TMDBClient(
        settings.tmdb_api_key,
        max_connections=settings.tmdb_max_connections,
        timeout=settings.tmdb_timeout_sec,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    load_dotenv(find_dotenv(), override=False)

    settings = Settings()
    app.state.settings = settings
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO)
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)

    app.state.supabase_url = settings.supabase_url
    app.state.supabase_api_key = settings.supabase_api_key
    app.state.catalog = None
    app.state.metadata_cache = make_metadata_cache(
        use_redis=settings.use_redis_metadata_cache,
        redis_url=settings.redis_url,
        namespace=settings.metadata_cache_namespace,
        absolute_ttl_sec=settings.metadata_cache_ttl_sec,
    )
    if isinstance(app.state.metadata_cache, RedisMetadataCache):
        if not await app.state.metadata_cache.ping():
            log.warning("Redis metadata cache unreachable; using in-memory cache")
            await app.state.metadata_cache.aclose()
            app.state.metadata_cache = InMemoryMetadataCache(
                default_ttl_sec=settings.metadata_cache_ttl_sec
            )

    if _should_init_catalog():
        _init_catalog(app)
    else:
        log.warning("Catalog client initialization skipped by CINEPICK_SKIP_CATALOG_INIT")

    try:
        yield
    finally:
        if app.state.catalog is not None:
            await app.state.catalog.aclose()
        aclose = getattr(app.state.metadata_cache, "aclose", None)
        if aclose is not None:
            await aclose()


app = FastAPI(title="Cinepick Recommendation API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema
    schema = get_openapi(
        title=app.title,
        version="0.1.0",
        description="Cinepick Recommendation API",
        routes=app.routes,
    )
    components = schema.setdefault("components", {})
    components.setdefault("securitySchemes", {})["BearerAuth"] = {
        "type": "http",
        "scheme": "bearer",
        "bearerFormat": "JWT",
    }
    for path_item in schema.get("paths", {}).values():
        for operation in path_item.values():
            operation.setdefault("security", []).append({"BearerAuth": []})
    app.openapi_schema = schema
    return app.openapi_schema


app.openapi = _custom_openapi


@app.get("/health")
def health():
    s = app.state.settings
    return {"status": "ok", "service": s.app_name}


@app.get("/")
def read_root():
    return {"status": "ok"}


for r in all_routers:
    app.include_router(r)
