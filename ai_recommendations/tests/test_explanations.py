from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

from ai_recommendations.llm.config import LLMConfig
from ai_recommendations.recommendations.explanations import (
    EMPTY_EXPLANATION,
    build_batch_prompt,
    build_detailed_prompt,
    generate_batch_explanations,
    generate_detailed_explanation,
)
from ai_recommendations.recommendations.models import (
    BudgetRange,
    PropertyCandidate,
    ScoredProperty,
    UserContext,
)
from ai_recommendations.recommendations.scoring import score_property

ENABLED_CONFIG = LLMConfig(api_key="test-key", enabled=True)

CONTEXT = UserContext(
    preferred_locations=["Canggu"],
    preferred_types=["villa"],
    budget_range=BudgetRange(min=1_000_000_000, max=3_000_000_000),
    min_bedrooms=2,
)

CANDIDATES = [
    PropertyCandidate(id="a", title="Sunset Villa", price=2_000_000_000, bedrooms=3,
                      property_type="villa", city="Canggu", features=["Pool"]),
    PropertyCandidate(id="b", title="Jungle Loft", price=900_000_000, bedrooms=1,
                      property_type="apartment", city="Ubud", features=["Garden"], views_count=600),
    PropertyCandidate(id="c", title="Beach House", price=2_500_000_000, bedrooms=4,
                      property_type="house", city="Seminyak"),
]
SCORED = [ScoredProperty(candidate=c, score=score_property(c, CONTEXT)) for c in CANDIDATES]


def _mock_groq_response(content=None, tool_arguments=None) -> MagicMock:
    message = MagicMock()
    message.content = content
    if tool_arguments is None:
        message.tool_calls = None
    else:
        call = MagicMock()
        call.function.arguments = json.dumps(tool_arguments)
        message.tool_calls = [call]
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response


# ── Prompts ──────────────────────────────────────────────────────────────


def test_batch_prompt_numbers_properties_from_one():
    prompt = build_batch_prompt(SCORED, CONTEXT)
    assert "1. Sunset Villa - Rp 2,000,000,000 - villa - Canggu - 3 bed" in prompt
    assert "2. Jungle Loft" in prompt
    assert "(Discovery)" in prompt
    assert "- Budget: Rp 1,000,000,000 - Rp 3,000,000,000" in prompt


def test_batch_prompt_unbounded_budget_is_flexible():
    ctx = CONTEXT.model_copy(update={"budget_range": BudgetRange()})
    assert "- Budget: Rp 0 - flexible" in build_batch_prompt(SCORED, ctx)


def test_detailed_prompt_lists_breakdown():
    prompt = build_detailed_prompt(CANDIDATES[0], CONTEXT, SCORED[0].score)
    assert "- Title: Sunset Villa" in prompt
    assert "- Location: 100%" in prompt
    assert "Must-have features: None specified" in prompt


# ── Batch explanations ───────────────────────────────────────────────────


@patch("ai_recommendations.llm.groq_client.Groq")
def test_batch_maps_indices_back_to_ids(mock_groq_cls):
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response(
        tool_arguments={"explanations": [
            {"property_index": 1, "explanation": "Right where you want to live."},
            {"property_index": 3, "explanation": "Room for the whole family."},
            {"property_index": 9, "explanation": "Out of range."},
            {"property_index": "x", "explanation": "Garbage index."},
        ]},
    )

    result = generate_batch_explanations(SCORED, CONTEXT, config=ENABLED_CONFIG)

    assert result.ok
    assert result.value == {
        "a": "Right where you want to live.",
        "c": "Room for the whole family.",
    }


@patch("ai_recommendations.llm.groq_client.Groq")
def test_batch_ignores_fractional_indices(mock_groq_cls):
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response(
        tool_arguments={"explanations": [
            {"property_index": 1.5, "explanation": "Between two listings."},
            {"property_index": 2.0, "explanation": "Leafy and quiet."},
        ]},
    )

    result = generate_batch_explanations(SCORED, CONTEXT, config=ENABLED_CONFIG)

    assert result.value == {"b": "Leafy and quiet."}


@patch("ai_recommendations.llm.groq_client.Groq")
def test_batch_failure_is_reported_not_raised(mock_groq_cls):
    mock_groq_cls.return_value.chat.completions.create.side_effect = Exception("connection reset")

    result = generate_batch_explanations(SCORED, CONTEXT, config=ENABLED_CONFIG)

    assert not result.ok
    assert result.unwrap_or({}) == {}


@patch("ai_recommendations.llm.groq_client.Groq")
def test_batch_with_no_properties_skips_call(mock_groq_cls):
    result = generate_batch_explanations([], CONTEXT, config=ENABLED_CONFIG)

    assert result.ok
    assert result.value == {}
    mock_groq_cls.assert_not_called()


# ── Detailed explanation ─────────────────────────────────────────────────


@patch("ai_recommendations.llm.groq_client.Groq")
def test_detailed_returns_model_text(mock_groq_cls):
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response(
        "A calm villa close to the beach."
    )

    result = generate_detailed_explanation(CANDIDATES[0], CONTEXT, SCORED[0].score, config=ENABLED_CONFIG)

    assert result.value == "A calm villa close to the beach."


@patch("ai_recommendations.llm.groq_client.Groq")
def test_detailed_empty_content_uses_generic_text(mock_groq_cls):
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response("")

    result = generate_detailed_explanation(CANDIDATES[0], CONTEXT, SCORED[0].score, config=ENABLED_CONFIG)

    assert result.ok
    assert result.value == EMPTY_EXPLANATION


@patch("ai_recommendations.llm.groq_client.Groq")
def test_detailed_failure_is_reported(mock_groq_cls):
    mock_groq_cls.return_value.chat.completions.create.side_effect = Exception("timeout")

    result = generate_detailed_explanation(CANDIDATES[0], CONTEXT, SCORED[0].score, config=ENABLED_CONFIG)

    assert not result.ok
