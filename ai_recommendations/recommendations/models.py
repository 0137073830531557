from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator
from pydantic.alias_generators import to_camel


def _drop_nulls(data: Any) -> Any:
    """Let field defaults apply to columns that came back as SQL NULL."""
    if isinstance(data, dict):
        return {k: v for k, v in data.items() if v is not None}
    return data


def _as_float(value: Any) -> float:
    """Numeric column value, or 0 when it is missing or unparseable."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return number if math.isfinite(number) else 0.0


def _as_int(value: Any) -> int:
    # Fractional counts are truncated toward zero.
    return int(_as_float(value))


# ── Read boundary (database rows) ────────────────────────────────────────


class _Row(BaseModel):
    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _defaults_for_nulls(cls, data: Any) -> Any:
        return _drop_nulls(data)


class UserProfile(_Row):
    """A row of ``user_preference_profiles``."""

    preferred_locations: list[str] = Field(default_factory=list)
    preferred_property_types: list[str] = Field(default_factory=list)
    min_budget: float = 0.0
    max_budget: float = math.inf
    min_bedrooms: int | None = None
    must_have_features: list[str] = Field(default_factory=list)

    @field_validator("max_budget", mode="after")
    @classmethod
    def _unset_max_is_unbounded(cls, value: float) -> float:
        # 0 means "no upper bound was chosen"
        return value or math.inf


class PropertySnapshot(_Row):
    location: str = ""
    city: str = ""
    property_type: str = ""
    price: float = 0.0

    @field_validator("price", mode="before")
    @classmethod
    def _numeric_price(cls, value: Any) -> float:
        return _as_float(value)


class BehaviorSignal(_Row):
    """A row of ``user_behavior_signals``."""

    signal_type: str = ""
    time_spent_seconds: float = 0.0
    property_snapshot: PropertySnapshot = Field(default_factory=PropertySnapshot)

    @field_validator("time_spent_seconds", mode="before")
    @classmethod
    def _numeric_dwell(cls, value: Any) -> float:
        return _as_float(value)


class PropertyCandidate(BaseModel):
    """A catalog row from ``properties``. Unknown columns are carried through."""

    model_config = ConfigDict(extra="allow")

    id: str
    title: str = ""
    description: str = ""
    price: float = 0.0
    bedrooms: int = 0
    bathrooms: int = 0
    area_sqm: float = 0.0
    property_type: str = ""
    listing_type: str = ""
    city: str = ""
    state: str = ""
    location: str = ""
    features: list[str] = Field(default_factory=list)
    amenities: Any = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    thumbnail_url: str = ""
    views_count: int = 0

    @model_validator(mode="before")
    @classmethod
    def _defaults_for_nulls(cls, data: Any) -> Any:
        return _drop_nulls(data)

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: Any) -> str:
        return str(value)

    @field_validator("price", "area_sqm", mode="before")
    @classmethod
    def _numeric_float(cls, value: Any) -> float:
        return _as_float(value)

    @field_validator("bedrooms", "bathrooms", "views_count", mode="before")
    @classmethod
    def _numeric_int(cls, value: Any) -> int:
        return _as_int(value)


# ── Derived / scoring values ─────────────────────────────────────────────


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BudgetRange(_CamelModel):
    min: float = 0.0
    max: float = math.inf

    @field_serializer("max")
    def _serialize_max(self, value: float) -> float | None:
        return value if math.isfinite(value) else None


class UserContext(BaseModel):
    preferred_locations: list[str] = Field(default_factory=list)
    preferred_types: list[str] = Field(default_factory=list)
    budget_range: BudgetRange = Field(default_factory=BudgetRange)
    min_bedrooms: int | None = None
    must_have_features: list[str] = Field(default_factory=list)
    # Collected but not read by any scoring factor.
    favorite_ids: list[str] = Field(default_factory=list)


class MatchReason(_CamelModel):
    factor: str
    score: float
    explanation: str
    weight: float


class PropertyScore(BaseModel):
    overall_score: float
    preference_score: float
    discovery_score: float
    match_reasons: list[MatchReason]
    is_discovery_match: bool


class ScoredProperty(BaseModel):
    candidate: PropertyCandidate
    score: PropertyScore

    @property
    def id(self) -> str:
        return self.candidate.id


# ── Wire models ──────────────────────────────────────────────────────────


class ActionRequest(_CamelModel):
    action: str = ""
    user_id: str | None = None
    property_id: str | None = None
    limit: int = Field(default=10, ge=0)


class PropertyMatch(_CamelModel):
    property_id: str
    overall_score: float
    preference_score: float
    discovery_score: float
    match_reasons: list[MatchReason]
    is_discovery_match: bool
    property: PropertyCandidate
    ai_explanation: str | None = None
    match_percentage: int
    is_discovery: bool


class UserInsights(_CamelModel):
    preferred_locations: list[str]
    budget_range: BudgetRange
    top_property_types: list[str]


class RecommendationMeta(_CamelModel):
    total_candidates: int
    preference_matches: int
    discovery_matches: int


class RecommendationsResponse(_CamelModel):
    success: bool = True
    recommendations: list[PropertyMatch]
    user_insights: UserInsights
    meta: RecommendationMeta


class PropertySummary(_CamelModel):
    id: str
    title: str
    price: float
    location: str


class ExplainMatchResponse(_CamelModel):
    success: bool = True
    property: PropertySummary
    match_score: int
    is_discovery_match: bool
    explanation: str
    match_breakdown: list[MatchReason]


class BehaviorPatterns(_CamelModel):
    top_types: list[str] = Field(default_factory=list)
    top_locations: list[str] = Field(default_factory=list)
    price_range: BudgetRange = Field(default_factory=lambda: BudgetRange(min=0.0, max=0.0))
    avg_dwell_time: int = 0
    total_views: int = 0


class Insight(BaseModel):
    title: str
    description: str
    suggestion: str


class DiscoveryInsightsResponse(_CamelModel):
    success: bool = True
    patterns: BehaviorPatterns
    insights: list[Insight]
