from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class CatalogMetadata:
    """
    The slice of a TMDB details payload the recommender needs.
    `restricted` mirrors TMDB's `adult` flag.
    """

    genre_ids: tuple[int, ...] = ()
    original_language: str | None = None
    restricted: bool = False
    release_date: str | None = None  # release_date (movie) or first_air_date (tv)
    title: str | None = None
    poster_path: str | None = None
    vote_average: float | None = None
    vote_count: int = 0
    overview: str = ""
    genres: tuple[dict[str, Any], ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["genre_ids"] = list(self.genre_ids)
        data["genres"] = [dict(g) for g in self.genres]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CatalogMetadata":
        return cls(
            genre_ids=tuple(int(g) for g in data.get("genre_ids") or ()),
            original_language=data.get("original_language"),
            restricted=bool(data.get("restricted")),
            release_date=data.get("release_date"),
            title=data.get("title"),
            poster_path=data.get("poster_path"),
            vote_average=data.get("vote_average"),
            vote_count=int(data.get("vote_count") or 0),
            overview=data.get("overview") or "",
            genres=tuple(dict(g) for g in data.get("genres") or ()),
        )


def parse_details(payload: Any, media_type: str) -> CatalogMetadata:
    """Build CatalogMetadata from a /movie/{id} or /tv/{id} response. Raises ValueError if malformed."""
    if not isinstance(payload, dict):
        raise ValueError("details payload is not an object")

    raw_genres = payload.get("genres")
    if raw_genres is not None and not isinstance(raw_genres, list):
        raise ValueError("genres is not a list")
    genres = tuple(
        {"id": int(g["id"]), "name": g.get("name")}
        for g in (raw_genres or [])
        if isinstance(g, dict) and "id" in g
    )
    genre_ids = tuple(g["id"] for g in genres) or tuple(
        int(g) for g in payload.get("genre_ids") or []
    )

    if media_type == "movie":
        release_date = payload.get("release_date") or None
        title = payload.get("title")
    else:
        release_date = payload.get("first_air_date") or None
        title = payload.get("name")

    vote_average = payload.get("vote_average")
    return CatalogMetadata(
        genre_ids=genre_ids,
        original_language=payload.get("original_language"),
        restricted=bool(payload.get("adult", False)),
        release_date=release_date,
        title=title,
        poster_path=payload.get("poster_path"),
        vote_average=float(vote_average) if vote_average is not None else None,
        vote_count=int(payload.get("vote_count") or 0),
        overview=payload.get("overview") or "",
        genres=genres,
    )
