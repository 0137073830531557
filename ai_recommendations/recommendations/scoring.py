"""
Deterministic property-to-user match scoring.

Each property is scored on five weighted factors (location, price, type,
bedrooms, features) into a 0-100 preference score, and separately on its
discovery potential (popularity, novelty, value, premium features). A
property that fits preferences poorly but is interesting enough is flagged
as a discovery match and ranked by its discovery score instead.
"""
from __future__ import annotations

import math

from .models import MatchReason, PropertyCandidate, PropertyScore, UserContext

LOCATION_WEIGHT = 0.25
PRICE_WEIGHT = 0.25
TYPE_WEIGHT = 0.20
BEDROOM_WEIGHT = 0.15
FEATURE_WEIGHT = 0.15

DISCOVERY_BASE = 50.0
DISCOVERY_CAP = 95.0
DISCOVERY_PREFERENCE_CEILING = 60.0
DISCOVERY_THRESHOLD = 50.0

PREMIUM_FEATURES = ("pool", "garden", "view", "smart home", "gym")


def format_rupiah(value: float) -> str:
    return f"Rp {value:,.0f}"


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (92.5 -> 93, not 92).

    Weighted sums such as 0.925 * 100 can land a hair below the half, so the
    value is first snapped to 6 decimal places.
    """
    return math.floor(round(value, 6) + 0.5)


def _contains_any(text: str, needles: list[str]) -> bool:
    haystack = text.lower()
    return any(n.lower() in haystack for n in needles)


def _location_reason(prop: PropertyCandidate, ctx: UserContext) -> MatchReason:
    place = prop.city or prop.location
    locations = ctx.preferred_locations
    matched = _contains_any(prop.city, locations) or _contains_any(prop.location, locations)
    if matched:
        return MatchReason(
            factor="Location",
            score=1.0,
            explanation=f"Located in {place} - one of your preferred areas",
            weight=LOCATION_WEIGHT,
        )
    return MatchReason(
        factor="Location",
        score=0.3,
        explanation=f"{place} - explore a new area",
        weight=LOCATION_WEIGHT,
    )


def _price_reason(prop: PropertyCandidate, ctx: UserContext) -> MatchReason:
    price = prop.price
    budget = ctx.budget_range
    # Anything above budget.max lands in the 0.2 bucket however far over it is.
    if budget.min <= price <= budget.max:
        score, explanation = 1.0, f"{format_rupiah(price)} fits your budget"
    elif price < budget.min * 0.8:
        score, explanation = 0.6, f"Great value at {format_rupiah(price)}"
    else:
        score, explanation = 0.2, f"{format_rupiah(price)} - above typical range"
    return MatchReason(factor="Price", score=score, explanation=explanation, weight=PRICE_WEIGHT)


def _type_reason(prop: PropertyCandidate, ctx: UserContext) -> MatchReason:
    if _contains_any(prop.property_type, ctx.preferred_types):
        return MatchReason(
            factor="Property Type",
            score=1.0,
            explanation=f"{prop.property_type} - matches your preference",
            weight=TYPE_WEIGHT,
        )
    return MatchReason(
        factor="Property Type",
        score=0.4,
        explanation=prop.property_type,
        weight=TYPE_WEIGHT,
    )


def _bedroom_reason(prop: PropertyCandidate, ctx: UserContext) -> MatchReason:
    if not ctx.min_bedrooms or prop.bedrooms >= ctx.min_bedrooms:
        return MatchReason(
            factor="Bedrooms",
            score=1.0,
            explanation=f"{prop.bedrooms} bedrooms meets your needs",
            weight=BEDROOM_WEIGHT,
        )
    return MatchReason(
        factor="Bedrooms",
        score=0.5,
        explanation=f"{prop.bedrooms} bedrooms available",
        weight=BEDROOM_WEIGHT,
    )


def _feature_reason(prop: PropertyCandidate, ctx: UserContext) -> MatchReason:
    features = prop.features
    has_required = all(_contains_any_feature(features, f) for f in ctx.must_have_features)
    if has_required and features:
        return MatchReason(
            factor="Features",
            score=1.0,
            explanation="Has key features you want",
            weight=FEATURE_WEIGHT,
        )
    return MatchReason(
        factor="Features",
        score=0.5,
        explanation=f"{len(features)} features available",
        weight=FEATURE_WEIGHT,
    )


def _contains_any_feature(features: list[str], wanted: str) -> bool:
    wanted = wanted.lower()
    return any(wanted in f.lower() for f in features)


def discovery_potential(prop: PropertyCandidate, ctx: UserContext) -> float:
    """Score in [0, 95] for how worthwhile the property is as a surprise pick."""
    score = DISCOVERY_BASE

    # Trending listings
    if prop.views_count > 100:
        score += 10
    if prop.views_count > 500:
        score += 10

    if not _contains_any(prop.city, ctx.preferred_locations):
        score += 15

    if prop.price < ctx.budget_range.min * 0.9:
        score += 10

    if any(_contains_any_feature(prop.features, pf) for pf in PREMIUM_FEATURES):
        score += 10

    return max(0.0, min(score, DISCOVERY_CAP))


def is_discovery_match(preference_score: float, discovery_score: float) -> bool:
    return (
        preference_score < DISCOVERY_PREFERENCE_CEILING
        and discovery_score > DISCOVERY_THRESHOLD
    )


def score_property(prop: PropertyCandidate, ctx: UserContext) -> PropertyScore:
    """Score one property against one user context. Pure and deterministic."""
    reasons = [
        _location_reason(prop, ctx),
        _price_reason(prop, ctx),
        _type_reason(prop, ctx),
        _bedroom_reason(prop, ctx),
        _feature_reason(prop, ctx),
    ]
    total_weight = sum(r.weight for r in reasons)
    earned = sum(r.weight * r.score for r in reasons)
    preference = earned / total_weight * 100

    discovery = discovery_potential(prop, ctx)
    discovery_match = is_discovery_match(preference, discovery)

    return PropertyScore(
        overall_score=discovery if discovery_match else preference,
        preference_score=preference,
        discovery_score=discovery,
        match_reasons=reasons,
        is_discovery_match=discovery_match,
    )
