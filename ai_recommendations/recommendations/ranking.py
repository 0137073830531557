from __future__ import annotations

import math
from typing import TypeVar

from .models import ScoredProperty

T = TypeVar("T")

PREFERENCE_SHARE = 0.8
DISCOVERY_SHARE = 0.2

# Discovery picks go after positions 2, 6, 10, ... of the preference list.
_FIRST_SLOT = 2
_SLOT_STEP = 4


def split_matches(
    scored: list[ScoredProperty],
    limit: int,
) -> tuple[list[ScoredProperty], list[ScoredProperty]]:
    """Partition into the ~80% preference and ~20% discovery streams."""
    preference = sorted(
        (s for s in scored if not s.score.is_discovery_match),
        key=lambda s: s.score.overall_score,
        reverse=True,
    )[: math.ceil(limit * PREFERENCE_SHARE)]

    discovery = sorted(
        (s for s in scored if s.score.is_discovery_match),
        key=lambda s: s.score.discovery_score,
        reverse=True,
    )[: math.floor(limit * DISCOVERY_SHARE)]

    return preference, discovery


def interleave_results(preference: list[T], discovery: list[T]) -> list[T]:
    """
    Blend discovery matches into the preference list.

    Each next discovery match is inserted right after index 2, 6, 10, ... of
    the growing list while both sides last; leftovers are appended.
    """
    result = list(preference)
    remaining = iter(discovery)
    used = 0

    i = _FIRST_SLOT
    while i < len(result) and used < len(discovery):
        result.insert(i + 1, next(remaining))
        used += 1
        i += _SLOT_STEP

    result.extend(remaining)
    return result
