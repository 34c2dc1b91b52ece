from typing import Iterable

from cinepick_core.config import ANIMATION_GENRE_ID, JAPANESE_LANGUAGE
from cinepick_core.types import ContentKind
from cinepick_tmdb.metadata import CatalogMetadata

from .types import EnrichedItem


def is_anime(genre_ids: Iterable[int], original_language: str | None) -> bool:
    return ANIMATION_GENRE_ID in set(genre_ids) and original_language == JAPANESE_LANGUAGE


def classify_metadata(media_type: str, metadata: CatalogMetadata) -> ContentKind:
    """Anime wins over the stored media type; otherwise movie/tv as stored."""
    if is_anime(metadata.genre_ids, metadata.original_language):
        return ContentKind.ANIME
    if media_type == "movie":
        return ContentKind.MOVIE
    return ContentKind.TV


def classify(item: EnrichedItem) -> ContentKind:
    return classify_metadata(item.media_type, item.metadata)
