from dataclasses import dataclass
from datetime import datetime
from enum import Enum

MediaId = int


class MediaType(str, Enum):
    MOVIE = "movie"
    TV = "tv"


class ContentKind(str, Enum):
    """Display label derived from catalog metadata, not the stored media type."""

    MOVIE = "movie"
    TV = "tv"
    ANIME = "anime"


class ListStatus(str, Enum):
    WANT = "want"
    WATCHED = "watched"
    REWATCHED = "rewatched"
    DROPPED = "dropped"


class SelectionAction(str, Enum):
    SHOWN = "shown"
    ACCEPTED = "accepted"
    SKIPPED = "skipped"


# (media_id, media_type) identifies one catalog title across lists and events
ItemKey = tuple[MediaId, str]


def item_key(media_id: MediaId, media_type: str | MediaType) -> ItemKey:
    mt = media_type.value if isinstance(media_type, MediaType) else str(media_type)
    return (int(media_id), mt)


@dataclass
class ShownEvent:
    media_id: MediaId
    media_type: str
    shown_at: datetime  # tz-aware
