from __future__ import annotations

import math
from collections import Counter
from typing import Iterable

from .models import BehaviorSignal, BudgetRange, UserContext, UserProfile

IMPLICIT_TOP_N = 3


def _top_values(values: Iterable[str], n: int) -> list[str]:
    """Most frequent non-empty values; ties keep first-seen order."""
    counter: Counter[str] = Counter(v for v in values if v)
    return [value for value, _ in counter.most_common(n)]


def _union(*groups: Iterable[str]) -> list[str]:
    """Order-preserving de-duplicated concatenation."""
    return list(dict.fromkeys(item for group in groups for item in group))


def percentile_range(prices: Iterable[float], empty_max: float) -> BudgetRange:
    """
    Return the 10th/90th percentile of ``prices`` by floor index.

    With ``n`` sorted prices the bounds are the elements at ``floor(n*0.1)``
    and ``floor(n*0.9)``. An empty input gives ``0`` and ``empty_max``.
    """
    ordered = sorted(p for p in prices if p)
    if not ordered:
        return BudgetRange(min=0.0, max=empty_max)
    n = len(ordered)
    return BudgetRange(
        min=ordered[math.floor(n * 0.1)],
        max=ordered[math.floor(n * 0.9)],
    )


def build_user_context(
    profile: UserProfile | None,
    signals: list[BehaviorSignal] | None,
    favorite_ids: list[str] | None,
) -> UserContext:
    """Merge explicit profile preferences with behaviour implied by recent views."""
    profile = profile or UserProfile()
    signals = signals or []

    snapshots = [s.property_snapshot for s in signals]
    implicit_locations = _top_values((s.location for s in snapshots), IMPLICIT_TOP_N)
    implicit_types = _top_values((s.property_type for s in snapshots), IMPLICIT_TOP_N)

    if math.isfinite(profile.max_budget):
        budget = BudgetRange(min=profile.min_budget, max=profile.max_budget)
    else:
        budget = percentile_range((s.price for s in snapshots), empty_max=math.inf)

    return UserContext(
        preferred_locations=_union(profile.preferred_locations, implicit_locations),
        preferred_types=_union(profile.preferred_property_types, implicit_types),
        budget_range=budget,
        min_bedrooms=profile.min_bedrooms,
        must_have_features=list(profile.must_have_features),
        favorite_ids=list(favorite_ids or []),
    )
