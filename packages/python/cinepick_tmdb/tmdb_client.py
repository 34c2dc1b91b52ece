import asyncio
import logging

import httpx

from cinepick_core.errors import CatalogLookupError

from .metadata import CatalogMetadata, parse_details

log = logging.getLogger(__name__)


class TMDBClient:
    BASE_URL = "https://api.themoviedb.org/3"

    def __init__(
        self,
        api_key: str,
        max_connections: int = 15,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        limits = httpx.Limits(
            max_connections=max_connections, max_keepalive_connections=max_connections
        )
        self.client = httpx.AsyncClient(
            base_url=self.BASE_URL,
            timeout=httpx.Timeout(timeout),
            limits=limits,
            headers={"Accept": "application/json"},
            transport=transport,
        )
        self.semaphore = asyncio.Semaphore(max_connections)

    async def get(self, path: str, *, media_type: str, media_id: int) -> dict:
        async with self.semaphore:
            try:
                response = await self.client.get(
                    path, params={"api_key": self.api_key, "language": "en-US"}
                )
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as e:
                reason = (
                    "not_found"
                    if e.response.status_code == 404
                    else f"http_{e.response.status_code}"
                )
                raise CatalogLookupError(media_type, media_id, reason) from e
            except httpx.RequestError as e:
                raise CatalogLookupError(
                    media_type, media_id, f"request_error: {e.__class__.__name__}"
                ) from e
            except ValueError as e:
                raise CatalogLookupError(media_type, media_id, "invalid_json") from e

    async def fetch_media_details(
        self, media_type: str, media_id: int
    ) -> CatalogMetadata:
        """GET /{movie|tv}/{id}. Raises CatalogLookupError on any failure."""
        if media_type not in ("movie", "tv"):
            raise CatalogLookupError(media_type, media_id, "unsupported_media_type")
        data = await self.get(
            f"/{media_type}/{media_id}", media_type=media_type, media_id=media_id
        )
        try:
            return parse_details(data, media_type)
        except (ValueError, TypeError, KeyError) as e:
            raise CatalogLookupError(media_type, media_id, f"malformed: {e}") from e

    async def aclose(self):
        await self.client.aclose()
