from __future__ import annotations

import logging
from collections import Counter

from pydantic import ValidationError

from ..llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from ..llm.groq_client import LLMResult, tool_call
from .context import percentile_range
from .models import BehaviorPatterns, BehaviorSignal, Insight
from .scoring import format_rupiah, round_half_up

logger = logging.getLogger(__name__)

TOP_TYPES = 3
TOP_LOCATIONS = 5

INSIGHTS_SYSTEM_PROMPT = (
    "You are a real estate advisor. Provide actionable insights based on user "
    "behavior. Respond in JSON format only."
)

PROVIDE_INSIGHTS_PARAMETERS = {
    "type": "object",
    "properties": {
        "insights": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "title": {"type": "string"},
                    "description": {"type": "string"},
                    "suggestion": {"type": "string"},
                },
                "required": ["title", "description", "suggestion"],
            },
        },
    },
    "required": ["insights"],
}


def analyze_patterns(signals: list[BehaviorSignal]) -> BehaviorPatterns:
    type_counter: Counter[str] = Counter()
    city_counter: Counter[str] = Counter()
    prices: list[float] = []
    total_dwell = 0.0

    for signal in signals:
        snapshot = signal.property_snapshot
        if snapshot.property_type:
            type_counter[snapshot.property_type] += 1
        if snapshot.city:
            city_counter[snapshot.city] += 1
        if snapshot.price:
            prices.append(snapshot.price)
        total_dwell += signal.time_spent_seconds or 0

    return BehaviorPatterns(
        top_types=[t for t, _ in type_counter.most_common(TOP_TYPES)],
        top_locations=[c for c, _ in city_counter.most_common(TOP_LOCATIONS)],
        price_range=percentile_range(prices, empty_max=0.0),
        avg_dwell_time=round_half_up(total_dwell / len(signals)) if signals else 0,
        total_views=len(signals),
    )


def build_insights_prompt(patterns: BehaviorPatterns) -> str:
    return "\n".join([
        "Analyze this property search behavior and provide 3 personalized insights:",
        "",
        "User Behavior:",
        f"- Most viewed property types: {', '.join(patterns.top_types)}",
        f"- Price range viewed: {format_rupiah(patterns.price_range.min)} - "
        f"{format_rupiah(patterns.price_range.max)}",
        f"- Most explored locations: {', '.join(patterns.top_locations)}",
        f"- Average time spent per listing: {patterns.avg_dwell_time}s",
        f"- Total properties viewed: {patterns.total_views}",
        "",
        'Provide insights as JSON: { "insights": [{ "title": "...", '
        '"description": "...", "suggestion": "..." }] }',
    ])


def generate_insights(
    patterns: BehaviorPatterns,
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> LLMResult[list[Insight]]:
    result = tool_call(
        INSIGHTS_SYSTEM_PROMPT,
        build_insights_prompt(patterns),
        tool_name="provide_insights",
        tool_description="Provide personalized property search insights",
        parameters=PROVIDE_INSIGHTS_PARAMETERS,
        config=config,
    )
    if not result.ok:
        return LLMResult.failure(result.error or "unknown error")

    try:
        raw = (result.value or {}).get("insights") or []
        return LLMResult.success([Insight.model_validate(item) for item in raw])
    except ValidationError as exc:
        logger.warning("Failed to parse insights", exc_info=True)
        return LLMResult.failure(str(exc))
