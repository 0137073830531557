from __future__ import annotations

import logging
import math

from ..llm.config import DEFAULT_LLM_CONFIG, LLMConfig
from ..llm.groq_client import LLMResult, chat_completion, tool_call
from .models import PropertyCandidate, PropertyScore, ScoredProperty, UserContext
from .scoring import format_rupiah, round_half_up

logger = logging.getLogger(__name__)

BATCH_SYSTEM_PROMPT = (
    "You are a friendly real estate advisor. Provide brief, personalized "
    "explanations for why properties match a user's needs. Be conversational "
    "and highlight specific matching factors."
)

DETAILED_SYSTEM_PROMPT = (
    "You are a knowledgeable real estate advisor. Provide personalized, "
    "conversational explanations that help users understand why a property "
    "is a good match for them. Be specific about matching factors."
)

EMPTY_EXPLANATION = "This property matches several of your preferences."
FALLBACK_EXPLANATION = "This property matches your search criteria and preferences."

EXPLAIN_MATCHES_PARAMETERS = {
    "type": "object",
    "properties": {
        "explanations": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "property_index": {"type": "number"},
                    "explanation": {"type": "string"},
                },
                "required": ["property_index", "explanation"],
            },
        },
    },
    "required": ["explanations"],
}


def _money_or(value: float, fallback: str) -> str:
    return format_rupiah(value) if math.isfinite(value) else fallback


def _preference_lines(ctx: UserContext, *, detailed: bool = False) -> list[str]:
    budget = ctx.budget_range
    lines = [
        f"- Budget: {_money_or(budget.min, 'flexible')} - {_money_or(budget.max, 'flexible')}",
        f"- Preferred locations: {', '.join(ctx.preferred_locations) or 'Not specified'}",
    ]
    if detailed:
        lines += [
            f"- Preferred property types: {', '.join(ctx.preferred_types) or 'Any'}",
            f"- Min bedrooms: {ctx.min_bedrooms or 'Not specified'}",
            f"- Must-have features: {', '.join(ctx.must_have_features) or 'None specified'}",
        ]
    else:
        lines += [
            f"- Preferred types: {', '.join(ctx.preferred_types) or 'Any'}",
            f"- Min bedrooms: {ctx.min_bedrooms or 'Any'}",
        ]
    return lines


def build_batch_prompt(properties: list[ScoredProperty], ctx: UserContext) -> str:
    lines = [
        'Generate brief, friendly "Why this match?" explanations for these '
        "properties based on user preferences.",
        "",
        "User Preferences:",
        *_preference_lines(ctx),
        "",
        "Properties:",
    ]
    for idx, item in enumerate(properties, start=1):
        p, s = item.candidate, item.score
        discovery = " (Discovery)" if s.is_discovery_match else ""
        lines.append(
            f"{idx}. {p.title} - {format_rupiah(p.price)} - {p.property_type} - "
            f"{p.city} - {p.bedrooms} bed - Match: {round_half_up(s.overall_score)}%{discovery}"
        )
    lines += [
        "",
        "For each property, provide a 1-2 sentence explanation why it's a good "
        "match or discovery opportunity.",
    ]
    return "\n".join(lines)


def build_detailed_prompt(
    prop: PropertyCandidate,
    ctx: UserContext,
    score: PropertyScore,
) -> str:
    lines = [
        "Generate a detailed, personalized explanation for why this property "
        "matches this user's needs.",
        "",
        "Property:",
        f"- Title: {prop.title}",
        f"- Price: {format_rupiah(prop.price)}",
        f"- Location: {prop.city}, {prop.state}",
        f"- Type: {prop.property_type}",
        f"- Bedrooms: {prop.bedrooms}, Bathrooms: {prop.bathrooms}",
        f"- Area: {prop.area_sqm:g} m²",
        f"- Features: {', '.join(prop.features)}",
        "",
        "User Preferences:",
        *_preference_lines(ctx, detailed=True),
        "",
        f"Match Score: {round_half_up(score.overall_score)}%",
    ]
    if score.is_discovery_match:
        lines.append(
            "This is a DISCOVERY match - interesting property outside usual preferences."
        )
    lines += ["", "Match breakdown:"]
    lines += [
        f"- {r.factor}: {round_half_up(r.score * 100)}% - {r.explanation}"
        for r in score.match_reasons
    ]
    lines += [
        "",
        "Provide a friendly 3-4 sentence explanation highlighting why this "
        "property is worth considering.",
    ]
    return "\n".join(lines)


def generate_batch_explanations(
    properties: list[ScoredProperty],
    ctx: UserContext,
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> LLMResult[dict[str, str]]:
    """
    Ask for one short explanation per property in a single call.

    The model answers with 1-based property indices which are mapped back to
    property ids. Fractional indices and indices outside the list are ignored.
    """
    if not properties:
        return LLMResult.success({})

    result = tool_call(
        BATCH_SYSTEM_PROMPT,
        build_batch_prompt(properties, ctx),
        tool_name="explain_matches",
        tool_description="Provide match explanations for properties",
        parameters=EXPLAIN_MATCHES_PARAMETERS,
        config=config,
    )
    if not result.ok:
        logger.info("Batch explanations unavailable: %s", result.error)
        return LLMResult.failure(result.error or "unknown error")

    explanations: dict[str, str] = {}
    for entry in (result.value or {}).get("explanations") or []:
        if not isinstance(entry, dict):
            continue
        try:
            position = float(entry.get("property_index", 0))
        except (TypeError, ValueError):
            continue
        if not position.is_integer():
            continue
        index = int(position) - 1
        text = entry.get("explanation")
        if 0 <= index < len(properties) and isinstance(text, str) and text:
            explanations[properties[index].id] = text

    return LLMResult.success(explanations)


def generate_detailed_explanation(
    prop: PropertyCandidate,
    ctx: UserContext,
    score: PropertyScore,
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> LLMResult[str]:
    result = chat_completion(
        DETAILED_SYSTEM_PROMPT,
        build_detailed_prompt(prop, ctx, score),
        config=config,
    )
    if result.ok and not result.value:
        return LLMResult.success(EMPTY_EXPLANATION)
    return result
