import httpx
import pytest

from cinepick_core.errors import CatalogLookupError
from cinepick_tmdb.metadata import CatalogMetadata, parse_details
from cinepick_tmdb.tmdb_client import TMDBClient

pytestmark = pytest.mark.anyio

MOVIE_PAYLOAD = {
    "id": 603,
    "title": "The Matrix",
    "adult": False,
    "original_language": "en",
    "release_date": "1999-03-31",
    "genres": [{"id": 28, "name": "Action"}, {"id": 878, "name": "Science Fiction"}],
    "poster_path": "/matrix.jpg",
    "vote_average": 8.2,
    "vote_count": 25000,
    "overview": "A hacker learns the truth.",
}


def _client(handler) -> TMDBClient:
    return TMDBClient("test-key", transport=httpx.MockTransport(handler))


async def test_fetch_movie_details():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["api_key"] = request.url.params.get("api_key")
        return httpx.Response(200, json=MOVIE_PAYLOAD)

    client = _client(handler)
    try:
        meta = await client.fetch_media_details("movie", 603)
    finally:
        await client.aclose()

    assert seen == {"path": "/3/movie/603", "api_key": "test-key"}
    assert meta.title == "The Matrix"
    assert meta.genre_ids == (28, 878)
    assert meta.release_date == "1999-03-31"
    assert meta.restricted is False
    assert meta.vote_count == 25000


async def test_fetch_tv_details_uses_name_and_first_air_date():
    payload = {
        "name": "Naruto",
        "first_air_date": "2002-10-03",
        "original_language": "ja",
        "genres": [{"id": 16, "name": "Animation"}],
    }
    client = _client(lambda request: httpx.Response(200, json=payload))
    try:
        meta = await client.fetch_media_details("tv", 46260)
    finally:
        await client.aclose()

    assert meta.title == "Naruto"
    assert meta.release_date == "2002-10-03"
    assert meta.genre_ids == (16,)


@pytest.mark.parametrize("status_code,reason", [(404, "not_found"), (503, "http_503")])
async def test_http_errors_raise_lookup_error(status_code, reason):
    client = _client(lambda request: httpx.Response(status_code, json={}))
    try:
        with pytest.raises(CatalogLookupError) as exc:
            await client.fetch_media_details("movie", 1)
    finally:
        await client.aclose()
    assert exc.value.reason == reason


async def test_transport_error_raises_lookup_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    client = _client(handler)
    try:
        with pytest.raises(CatalogLookupError) as exc:
            await client.fetch_media_details("movie", 1)
    finally:
        await client.aclose()
    assert exc.value.reason.startswith("request_error")


async def test_malformed_payload_raises_lookup_error():
    client = _client(lambda request: httpx.Response(200, json={"genres": "oops"}))
    try:
        with pytest.raises(CatalogLookupError):
            await client.fetch_media_details("movie", 1)
    finally:
        await client.aclose()


async def test_unsupported_media_type():
    client = _client(lambda request: httpx.Response(200, json=MOVIE_PAYLOAD))
    try:
        with pytest.raises(CatalogLookupError):
            await client.fetch_media_details("person", 1)
    finally:
        await client.aclose()


def test_parse_details_adult_flag_and_fallback_genre_ids():
    meta = parse_details({"adult": True, "genre_ids": [10749]}, "movie")
    assert meta.restricted is True
    assert meta.genre_ids == (10749,)


def test_metadata_dict_round_trip_keeps_genres():
    meta = parse_details(MOVIE_PAYLOAD, "movie")
    assert CatalogMetadata.from_dict(meta.to_dict()) == meta
