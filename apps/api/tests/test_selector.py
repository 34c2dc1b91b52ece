import random
import uuid

from cinepick_core.types import ListStatus
from cinepick_recommendation.selector import select_candidate
from cinepick_recommendation.types import EnrichedItem
from cinepick_tmdb.metadata import CatalogMetadata
from cinepick_watchlist.schemas import TrackedItem


def _candidate(media_id: int, *, adult: bool = False, degraded: bool = False) -> EnrichedItem:
    item = TrackedItem(
        id=str(uuid.uuid4()),
        user_id="u1",
        media_id=media_id,
        media_type="movie",
        status=ListStatus.WANT,
    )
    return EnrichedItem(
        item=item, metadata=CatalogMetadata(restricted=adult), degraded=degraded
    )


class _ScriptedRng:
    """Returns the queued indices in order."""

    def __init__(self, *indices: int):
        self.indices = list(indices)
        self.calls: list[int] = []

    def randrange(self, n: int) -> int:
        self.calls.append(n)
        return self.indices.pop(0)


def test_empty_candidates_returns_none():
    assert select_candidate([], restrict=True) is None


def test_unrestricted_user_may_get_adult_title():
    pool = [_candidate(1, adult=True)]
    sel = select_candidate(pool, restrict=False, rng=random.Random(1))
    assert sel is not None
    assert sel.item.item.media_id == 1
    assert not sel.retried


def test_allowed_first_draw_is_kept():
    pool = [_candidate(1), _candidate(2, adult=True)]
    rng = _ScriptedRng(0)
    sel = select_candidate(pool, restrict=True, rng=rng)
    assert sel.item.item.media_id == 1
    assert sel.position == 0
    assert not sel.retried
    assert rng.calls == [2]


def test_restricted_draw_redrawn_once_from_allowed_subset():
    pool = [_candidate(1, adult=True), _candidate(2), _candidate(3, adult=True), _candidate(4)]
    rng = _ScriptedRng(0, 1)
    sel = select_candidate(pool, restrict=True, rng=rng)
    # second draw is over [2, 4]
    assert rng.calls == [4, 2]
    assert sel.item.item.media_id == 4
    assert sel.position == 1
    assert sel.retried


def test_all_restricted_returns_none():
    pool = [_candidate(1, adult=True), _candidate(2, adult=True)]
    assert select_candidate(pool, restrict=True, rng=random.Random(3)) is None


def test_degraded_items_withheld_from_restricted_users():
    pool = [_candidate(1, degraded=True)]
    assert select_candidate(pool, restrict=True, rng=random.Random(0)) is None
    assert select_candidate(pool, restrict=False, rng=random.Random(0)) is not None


def test_restricted_user_never_gets_adult_title():
    pool = [_candidate(i, adult=(i % 3 != 0)) for i in range(12)]
    rng = random.Random(42)
    for _ in range(200):
        sel = select_candidate(pool, restrict=True, rng=rng)
        assert sel is not None
        assert not sel.item.metadata.restricted


def test_selection_is_member_of_candidates():
    pool = [_candidate(i) for i in range(5)]
    rng = random.Random(7)
    ids = {c.item.media_id for c in pool}
    for _ in range(50):
        assert select_candidate(pool, restrict=False, rng=rng).item.item.media_id in ids
