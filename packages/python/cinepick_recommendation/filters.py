"""
Request filter parsing. Parsing is total: malformed or missing values fall
back to defaults instead of rejecting the request.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Mapping

from cinepick_core.types import ContentKind, ListStatus

ALL_KINDS: frozenset[ContentKind] = frozenset(ContentKind)
SELECTABLE_LISTS: frozenset[ListStatus] = frozenset(
    {ListStatus.WANT, ListStatus.WATCHED}
)
DEFAULT_LISTS: frozenset[ListStatus] = frozenset({ListStatus.WANT})


@dataclass(frozen=True)
class FilterSpec:
    kinds: frozenset[ContentKind] = ALL_KINDS
    lists: frozenset[ListStatus] = DEFAULT_LISTS
    min_rating: float | None = None
    max_rating: float | None = None
    year_from: int | None = None
    year_to: int | None = None
    genres: frozenset[int] | None = None

    def __post_init__(self) -> None:
        if not self.kinds:
            raise ValueError("FilterSpec.kinds must not be empty")
        if not self.lists:
            raise ValueError("FilterSpec.lists must not be empty")

    @property
    def rating_filter_active(self) -> bool:
        # a user rating only exists once a title has been watched
        if ListStatus.WATCHED not in self.lists:
            return False
        return self.min_rating is not None or self.max_rating is not None

    @property
    def year_filter_active(self) -> bool:
        return self.year_from is not None or self.year_to is not None

    @property
    def genre_filter_active(self) -> bool:
        return bool(self.genres)


def _split(raw: str | None) -> list[str]:
    if not raw:
        return []
    return [part.strip().lower() for part in raw.split(",") if part.strip()]


def _parse_kinds(raw: str | None) -> frozenset[ContentKind]:
    values = {k.value for k in ContentKind}
    kinds = frozenset(ContentKind(p) for p in _split(raw) if p in values)
    return kinds or ALL_KINDS


def _parse_lists(raw: str | None) -> frozenset[ListStatus]:
    values = {s.value for s in SELECTABLE_LISTS}
    lists = frozenset(ListStatus(p) for p in _split(raw) if p in values)
    return lists or DEFAULT_LISTS


def _parse_float(raw: str | None) -> float | None:
    if raw is None:
        return None
    try:
        value = float(str(raw).strip())
    except ValueError:
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def _parse_int(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        return int(str(raw).strip())
    except ValueError:
        return None


def _parse_genres(raw: str | None) -> frozenset[int] | None:
    genres = set()
    for part in _split(raw):
        try:
            genres.add(int(part))
        except ValueError:
            continue
    return frozenset(genres) or None


def parse_filter_params(
    *,
    types: str | None = None,
    lists: str | None = None,
    min_rating: str | None = None,
    max_rating: str | None = None,
    year_from: str | None = None,
    year_to: str | None = None,
    genres: str | None = None,
) -> FilterSpec:
    return FilterSpec(
        kinds=_parse_kinds(types),
        lists=_parse_lists(lists),
        min_rating=_parse_float(min_rating),
        max_rating=_parse_float(max_rating),
        year_from=_parse_int(year_from),
        year_to=_parse_int(year_to),
        genres=_parse_genres(genres),
    )


def filter_spec_from_query(params: Mapping[str, str]) -> FilterSpec:
    """Parse the camelCase query string used by the web client."""
    return parse_filter_params(
        types=params.get("types"),
        lists=params.get("lists"),
        min_rating=params.get("minRating"),
        max_rating=params.get("maxRating"),
        year_from=params.get("yearFrom"),
        year_to=params.get("yearTo"),
        genres=params.get("genres"),
    )
