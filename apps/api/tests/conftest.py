import asyncio
import os
import random
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List

import pytest
from fastapi.testclient import TestClient

from cinepick_core.errors import CatalogLookupError
from cinepick_recommendation.cooldown import CooldownPolicy
from cinepick_recommendation.enricher import MetadataEnricher
from cinepick_recommendation.events_repo import SupabaseSelectionEventRepo
from cinepick_recommendation.pipeline import FilterPipeline
from cinepick_recommendation.recommend_service import RecommendationService
from cinepick_recommendation.recorder import SelectionRecorder
from cinepick_tmdb.cache import InMemoryMetadataCache
from cinepick_tmdb.metadata import CatalogMetadata
from cinepick_watchlist.supabase_repo import SupabaseTrackedItemRepo

USER_ID = "00000000-0000-0000-0000-000000000000"
NOW = datetime(2025, 3, 14, 20, 30, tzinfo=timezone.utc)  # a Friday


def _load_test_env() -> None:
    os.environ.setdefault("CINEPICK_SKIP_CATALOG_INIT", "1")
    os.environ.setdefault("SUPABASE_URL", "http://localhost")
    os.environ.setdefault("SUPABASE_API_KEY", "test_anon_key")


def _cmp_value(value: Any) -> Any:
    if isinstance(value, str):
        s = value[:-1] + "+00:00" if value.endswith("Z") else value
        try:
            return datetime.fromisoformat(s)
        except ValueError:
            return value
    return value


class _Resp:
    def __init__(self, data):
        self.data = data


class _FakeQuery:
    def __init__(self, db: "FakeSupabaseClient", table: str):
        self._db = db
        self._table = table
        self._op = "select"
        self._payload: Any = None
        self._filters: List[Callable[[dict], bool]] = []
        self._limit: int | None = None
        self._order: tuple[str, bool] | None = None

    # Write chains
    def insert(self, rows, returning: str = "representation"):
        self._op = "insert"
        self._payload = rows
        return self

    def update(self, values, returning: str = "representation"):
        self._op = "update"
        self._payload = values
        return self

    def select(self, _cols: str = "*", count: str | None = None):
        return self

    # Filters
    def eq(self, col: str, value):
        self._filters.append(lambda r: r.get(col) == value)
        return self

    def in_(self, col: str, values):
        allowed = list(values)
        self._filters.append(lambda r: r.get(col) in allowed)
        return self

    def is_(self, col: str, value):
        self._filters.append(lambda r: r.get(col) is value)
        return self

    def gt(self, col: str, value):
        target = _cmp_value(value)
        self._filters.append(
            lambda r: r.get(col) is not None and _cmp_value(r.get(col)) > target
        )
        return self

    def gte(self, col: str, value):
        target = _cmp_value(value)
        self._filters.append(
            lambda r: r.get(col) is not None and _cmp_value(r.get(col)) >= target
        )
        return self

    def limit(self, n: int):
        self._limit = n
        return self

    def order(self, col: str, desc: bool = False):
        self._order = (col, desc)
        return self

    def execute(self):
        self._db.calls.append((self._table, self._op))
        err = self._db.failures.get((self._table, self._op))
        if err is not None:
            raise err

        rows = self._db.tables.setdefault(self._table, [])
        if self._op == "insert":
            payload = self._payload if isinstance(self._payload, list) else [self._payload]
            out = []
            for r in payload:
                row = dict(r)
                row.setdefault("id", str(uuid.uuid4()))
                rows.append(row)
                out.append(dict(row))
            return _Resp(out)

        matched = [r for r in rows if all(f(r) for f in self._filters)]
        if self._op == "update":
            for r in matched:
                r.update(self._payload)
            return _Resp([dict(r) for r in matched])

        if self._order:
            col, desc = self._order
            matched.sort(key=lambda r: _cmp_value(r.get(col)), reverse=desc)
        if self._limit is not None:
            matched = matched[: self._limit]
        return _Resp([dict(r) for r in matched])


class _FakeRpc:
    def __init__(self, db: "FakeSupabaseClient", name: str, params: Dict[str, Any]):
        self._db = db
        self._name = name
        self._params = params

    def execute(self):
        self._db.calls.append(("rpc", self._name))
        err = self._db.failures.get(("rpc", self._name))
        if err is not None:
            raise err
        if self._name == "increment_recommendation_count":
            p = self._params
            for r in self._db.tables.get("user_watchlist", []):
                if (
                    r["user_id"] == p["p_user_id"]
                    and r["media_id"] == p["p_media_id"]
                    and r["media_type"] == p["p_media_type"]
                    and r.get("deleted_at") is None
                ):
                    r["recommendation_count"] = r.get("recommendation_count", 0) + 1
                    r["last_recommended_at"] = p["p_at"]
        return _Resp(None)


class _FakeUser:
    def __init__(self, user_id: str):
        self.id = user_id


class _FakeAuth:
    def __init__(self, user_id: str):
        self._user_id = user_id

    def get_user(self, _token: str):
        class _UserResp:
            pass

        resp = _UserResp()
        resp.user = _FakeUser(self._user_id)
        return resp


class FakeSupabaseClient:
    """In-memory stand-in for the PostgREST query builder used by the repos."""

    def __init__(self, user_id: str = USER_ID):
        self.tables: Dict[str, List[Dict[str, Any]]] = {}
        self.failures: Dict[tuple[str, str], Exception] = {}
        self.calls: List[tuple[str, str]] = []
        self.auth = _FakeAuth(user_id)

    def table(self, name: str):
        return _FakeQuery(self, name)

    def rpc(self, name: str, params: Dict[str, Any]):
        return _FakeRpc(self, name, params)

    def fail(self, table: str, op: str, exc: Exception | None = None) -> None:
        self.failures[(table, op)] = exc or RuntimeError(f"{table}.{op} unavailable")

    # seeding helpers
    def add_tracked(
        self,
        media_id: int,
        *,
        media_type: str = "movie",
        status: str = "want",
        rating: float | None = None,
        vote_average: float | None = None,
        added_at: datetime | None = None,
        user_id: str = USER_ID,
        title: str | None = None,
    ) -> Dict[str, Any]:
        row = {
            "id": str(uuid.uuid4()),
            "user_id": user_id,
            "media_id": media_id,
            "media_type": media_type,
            "status": status,
            "rating": rating,
            "title": title or f"Title {media_id}",
            "vote_average": vote_average,
            "added_at": added_at.isoformat() if added_at else None,
            "recommendation_count": 0,
            "last_recommended_at": None,
            "deleted_at": None,
        }
        self.tables.setdefault("user_watchlist", []).append(row)
        return row

    def add_shown(
        self,
        media_id: int,
        shown_at: datetime,
        *,
        media_type: str = "movie",
        user_id: str = USER_ID,
    ) -> Dict[str, Any]:
        row = {
            "id": str(uuid.uuid4()),
            "user_id": user_id,
            "media_id": media_id,
            "media_type": media_type,
            "algorithm": "random-v1",
            "action": "shown",
            "shown_at": shown_at.isoformat(),
        }
        self.tables.setdefault("recommendation_events", []).append(row)
        return row

    def tracked_row(self, media_id: int, media_type: str = "movie") -> Dict[str, Any]:
        for r in self.tables.get("user_watchlist", []):
            if r["media_id"] == media_id and r["media_type"] == media_type:
                return r
        raise KeyError((media_id, media_type))


class FakeCatalog:
    """Catalog lookup double: known entries, failures, and lookups that never answer."""

    def __init__(self):
        self.entries: Dict[tuple[str, int], Any] = {}
        self.hanging: set[tuple[str, int]] = set()
        self.calls: List[tuple[str, int]] = []

    def add(self, media_id: int, media_type: str = "movie", **fields) -> CatalogMetadata:
        fields.setdefault("title", f"Title {media_id}")
        if "genre_ids" in fields:
            fields["genre_ids"] = tuple(fields["genre_ids"])
        meta = CatalogMetadata(**fields)
        self.entries[(media_type, media_id)] = meta
        return meta

    def fail(self, media_id: int, media_type: str = "movie", exc: Exception | None = None) -> None:
        self.entries[(media_type, media_id)] = exc or CatalogLookupError(
            media_type, media_id, "http_500"
        )

    def hang(self, media_id: int, media_type: str = "movie") -> None:
        self.hanging.add((media_type, media_id))

    async def fetch_media_details(self, media_type: str, media_id: int) -> CatalogMetadata:
        key = (media_type, media_id)
        self.calls.append(key)
        if key in self.hanging:
            await asyncio.sleep(30)
        value = self.entries.get(key)
        if value is None:
            raise CatalogLookupError(media_type, media_id, "not_found")
        if isinstance(value, Exception):
            raise value
        return value


class FakeAgePolicy:
    def __init__(self, restrict: bool = False):
        self.restrict = restrict
        self.calls = 0

    async def should_restrict(self, user_id: str) -> bool:
        self.calls += 1
        return self.restrict


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def fake_db() -> FakeSupabaseClient:
    return FakeSupabaseClient()


@pytest.fixture
def catalog() -> FakeCatalog:
    return FakeCatalog()


@pytest.fixture
def age_policy() -> FakeAgePolicy:
    return FakeAgePolicy(restrict=False)


@pytest.fixture
def build_service(fake_db, catalog, age_policy):
    def _build(
        *,
        seed: int = 7,
        now: datetime = NOW,
        timeout_sec: float = 0.05,
        cache=None,
    ) -> RecommendationService:
        tracked = SupabaseTrackedItemRepo(fake_db)
        events = SupabaseSelectionEventRepo(fake_db)
        cooldown = CooldownPolicy(events, clock=lambda: now)
        return RecommendationService(
            tracked=tracked,
            enricher=MetadataEnricher(catalog, cache, timeout_sec=timeout_sec),
            pipeline=FilterPipeline(cooldown),
            age_policy=age_policy,
            recorder=SelectionRecorder(events, tracked),
            rng=random.Random(seed),
            clock=lambda: now,
        )

    return _build


@pytest.fixture()
def test_client(fake_db, catalog):
    # Ensure required env vars exist before importing the app
    _load_test_env()

    from app.main import app  # type: ignore
    from app.deps.deps import get_catalog  # type: ignore
    from app.deps.supabase_client import (  # type: ignore
        get_current_user_id,
        get_supabase_client,
    )

    app.dependency_overrides[get_supabase_client] = lambda: fake_db
    app.dependency_overrides[get_current_user_id] = lambda: USER_ID
    app.dependency_overrides[get_catalog] = lambda: catalog

    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def memory_cache() -> InMemoryMetadataCache:
    return InMemoryMetadataCache(default_ttl_sec=60)
