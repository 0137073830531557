from __future__ import annotations

import logging
import time

from ..llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from .context import build_user_context
from .data_store import SupabaseDataStore
from .explanations import (
    FALLBACK_EXPLANATION,
    generate_batch_explanations,
    generate_detailed_explanation,
)
from .insights import analyze_patterns, generate_insights
from .models import (
    DiscoveryInsightsResponse,
    ExplainMatchResponse,
    PropertyMatch,
    PropertySummary,
    RecommendationMeta,
    RecommendationsResponse,
    ScoredProperty,
    UserInsights,
)
from .ranking import interleave_results, split_matches
from .scoring import round_half_up, score_property

logger = logging.getLogger(__name__)

RECENT_SIGNAL_DAYS = 30
RECENT_SIGNAL_LIMIT = 50
EXPLAIN_SIGNAL_LIMIT = 30
INSIGHT_SIGNAL_LIMIT = 100
FAVORITES_LIMIT = 20
CANDIDATE_LIMIT = 100
EXPLAINED_TOP_N = 5


class PropertyNotFoundError(LookupError):
    pass


def _to_match(item: ScoredProperty, explanation: str | None) -> PropertyMatch:
    s = item.score
    return PropertyMatch(
        property_id=item.id,
        overall_score=s.overall_score,
        preference_score=s.preference_score,
        discovery_score=s.discovery_score,
        match_reasons=s.match_reasons,
        is_discovery_match=s.is_discovery_match,
        property=item.candidate,
        ai_explanation=explanation,
        match_percentage=round_half_up(s.overall_score),
        is_discovery=s.is_discovery_match,
    )


class RecommendationService:
    def __init__(self, store: SupabaseDataStore, llm_config: LLMConfig = DEFAULT_LLM_CONFIG):
        self.store = store
        self.llm_config = llm_config

    def get_ai_recommendations(self, user_id: str, limit: int = 10) -> RecommendationsResponse:
        start_time = time.time()

        # --- User context ---
        profile = self.store.get_profile(user_id)
        signals = self.store.get_recent_signals(
            user_id, limit=RECENT_SIGNAL_LIMIT, since_days=RECENT_SIGNAL_DAYS,
        )
        favorite_ids = self.store.get_favorite_ids(user_id, limit=FAVORITES_LIMIT)
        ctx = build_user_context(profile, signals, favorite_ids)

        # --- Scoring ---
        candidates = self.store.get_candidates(limit=CANDIDATE_LIMIT)
        scored = [ScoredProperty(candidate=c, score=score_property(c, ctx)) for c in candidates]

        # --- 80/20 split & interleave ---
        preference, discovery = split_matches(scored, limit)
        ranked = interleave_results(preference, discovery)

        # --- AI explanations for the head of the list ---
        explained = generate_batch_explanations(
            ranked[:EXPLAINED_TOP_N], ctx, config=self.llm_config,
        )
        explanations = explained.unwrap_or({})

        elapsed_ms = round((time.time() - start_time) * 1000, 1)
        logger.info(
            "Recommendations for %s: %d candidates, %d preference, %d discovery, "
            "%d explained in %.1fms",
            user_id, len(candidates), len(preference), len(discovery),
            len(explanations), elapsed_ms,
        )

        return RecommendationsResponse(
            recommendations=[_to_match(item, explanations.get(item.id)) for item in ranked],
            user_insights=UserInsights(
                preferred_locations=ctx.preferred_locations,
                budget_range=ctx.budget_range,
                top_property_types=ctx.preferred_types,
            ),
            meta=RecommendationMeta(
                total_candidates=len(candidates),
                preference_matches=len(preference),
                discovery_matches=len(discovery),
            ),
        )

    def explain_match(self, user_id: str, property_id: str) -> ExplainMatchResponse:
        prop = self.store.get_property(property_id)
        if prop is None:
            raise PropertyNotFoundError("Property not found")

        profile = self.store.get_profile(user_id)
        signals = self.store.get_recent_signals(
            user_id, limit=EXPLAIN_SIGNAL_LIMIT, columns="property_snapshot, signal_type",
        )
        ctx = build_user_context(profile, signals, [])
        score = score_property(prop, ctx)

        explanation = generate_detailed_explanation(prop, ctx, score, config=self.llm_config)

        return ExplainMatchResponse(
            property=PropertySummary(
                id=prop.id, title=prop.title, price=prop.price, location=prop.location,
            ),
            match_score=round_half_up(score.overall_score),
            is_discovery_match=score.is_discovery_match,
            explanation=explanation.unwrap_or(FALLBACK_EXPLANATION),
            match_breakdown=score.match_reasons,
        )

    def get_discovery_insights(self, user_id: str) -> DiscoveryInsightsResponse:
        signals = self.store.get_recent_signals(
            user_id, limit=INSIGHT_SIGNAL_LIMIT, columns="*",
        )
        patterns = analyze_patterns(signals)
        insights = generate_insights(patterns, config=self.llm_config)
        return DiscoveryInsightsResponse(patterns=patterns, insights=insights.unwrap_or([]))
