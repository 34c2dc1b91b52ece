from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Sequence

from .types import EnrichedItem


@dataclass(frozen=True)
class Selection:
    item: EnrichedItem
    position: int  # index within the list the final draw was made from
    retried: bool = False


def draw(candidates: Sequence[EnrichedItem], rng: random.Random | None = None) -> tuple[int, EnrichedItem]:
    index = (rng or random).randrange(len(candidates))
    return index, candidates[index]


def select_candidate(
    candidates: Sequence[EnrichedItem],
    *,
    restrict: bool,
    rng: random.Random | None = None,
) -> Selection | None:
    """
    Two-phase uniform selection.

    Phase 1 draws from all candidates. Only when `restrict` is set and the draw
    is age-restricted, phase 2 draws once from the non-restricted subset.
    Returns None when there is nothing to draw from in the final phase.
    """
    if not candidates:
        return None

    position, chosen = draw(candidates, rng)
    if not chosen.restricted_for(restrict):
        return Selection(item=chosen, position=position)

    allowed = [c for c in candidates if not c.restricted_for(restrict)]
    if not allowed:
        return None
    position, chosen = draw(allowed, rng)
    return Selection(item=chosen, position=position, retried=True)
