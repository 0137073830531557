from __future__ import annotations

import math

from ai_recommendations.recommendations.context import build_user_context, percentile_range
from ai_recommendations.recommendations.models import BehaviorSignal, UserProfile


def _signal(location: str = "", property_type: str = "", price: float | None = None) -> BehaviorSignal:
    return BehaviorSignal.model_validate({
        "signal_type": "view",
        "property_snapshot": {
            "location": location,
            "property_type": property_type,
            "price": price,
        },
    })


def test_empty_inputs_degrade_to_defaults():
    ctx = build_user_context(None, None, None)
    assert ctx.preferred_locations == []
    assert ctx.preferred_types == []
    assert ctx.budget_range.min == 0
    assert math.isinf(ctx.budget_range.max)
    assert ctx.min_bedrooms is None
    assert ctx.must_have_features == []
    assert ctx.favorite_ids == []


def test_implicit_locations_are_top_three_by_count():
    signals = (
        [_signal(location="Canggu")] * 3
        + [_signal(location="Ubud")] * 2
        + [_signal(location="Seminyak")] * 2
        + [_signal(location="Sanur")]
    )
    ctx = build_user_context(None, signals, [])
    assert ctx.preferred_locations == ["Canggu", "Ubud", "Seminyak"]


def test_explicit_preferences_come_first_and_are_deduplicated():
    profile = UserProfile(
        preferred_locations=["Sanur", "Canggu"],
        preferred_property_types=["villa"],
    )
    signals = [_signal(location="Canggu", property_type="villa")] * 2 + [
        _signal(location="Ubud", property_type="house"),
    ]
    ctx = build_user_context(profile, signals, [])
    assert ctx.preferred_locations == ["Sanur", "Canggu", "Ubud"]
    assert ctx.preferred_types == ["villa", "house"]


def test_explicit_budget_wins_when_max_is_set():
    profile = UserProfile(min_budget=1_000, max_budget=5_000)
    signals = [_signal(price=p) for p in (100, 200, 300)]
    ctx = build_user_context(profile, signals, [])
    assert ctx.budget_range.min == 1_000
    assert ctx.budget_range.max == 5_000


def test_budget_falls_back_to_viewed_price_percentiles():
    profile = UserProfile.model_validate({"min_budget": 50, "max_budget": None})
    signals = [_signal(price=p * 1_000) for p in range(100, 1001, 100)]
    ctx = build_user_context(profile, signals, [])
    # floor(10 * 0.1) = 1 and floor(10 * 0.9) = 9
    assert ctx.budget_range.min == 200_000
    assert ctx.budget_range.max == 1_000_000


def test_zero_max_budget_means_unbounded():
    profile = UserProfile.model_validate({"min_budget": 10, "max_budget": 0})
    assert math.isinf(profile.max_budget)
    ctx = build_user_context(profile, [_signal(price=700)], [])
    assert ctx.budget_range.min == 700
    assert ctx.budget_range.max == 700


def test_favorites_are_carried_through():
    ctx = build_user_context(None, [], ["p-1", "p-2"])
    assert ctx.favorite_ids == ["p-1", "p-2"]


def test_null_profile_columns_use_defaults():
    profile = UserProfile.model_validate({
        "preferred_locations": None,
        "preferred_property_types": None,
        "min_budget": None,
        "min_bedrooms": 2,
        "must_have_features": None,
    })
    ctx = build_user_context(profile, [], [])
    assert ctx.preferred_locations == []
    assert ctx.min_bedrooms == 2
    assert ctx.budget_range.min == 0


def test_percentile_range_ignores_missing_prices():
    rng = percentile_range([0, 300, 100, 200], empty_max=0)
    assert rng.min == 100
    assert rng.max == 300


def test_percentile_range_empty():
    rng = percentile_range([], empty_max=0)
    assert rng.min == 0
    assert rng.max == 0
