import json

import pytest

from app.core.exceptions import InvalidAnalysisSchema, UnparsableResponse, ValidationInput
from app.services import analysis_service
from app.services.analysis_service import build_analysis_prompt, extract_json_object, parse_analysis

from conftest import VALID_ANALYSIS


def _with(**overrides) -> str:
    return json.dumps({**VALID_ANALYSIS, **overrides})


def test_prompt_embeds_fields_and_schema():
    prompt = build_analysis_prompt("Dev Dashboard", "Track productivity", ["analytics", "dev"])

    assert "Title: Dev Dashboard" in prompt
    assert "Description: Track productivity" in prompt
    assert "Tags: analytics, dev" in prompt
    for field in ("marketDemand", "competitorAnalysis", "techStackSuggestion",
                  "featureSuggestions", "mrrProjection", "effortEstimation", "teamSize"):
        assert field in prompt


def test_prompt_without_tags():
    assert "Tags: none" in build_analysis_prompt("T", "D", [])


def test_extracts_object_surrounded_by_prose():
    text = f"Sure! Here is the analysis you asked for:\n```json\n{json.dumps(VALID_ANALYSIS)}\n```\nLet me know."

    payload = parse_analysis(text)

    assert payload.market_demand == 8
    assert payload.competitor_analysis == VALID_ANALYSIS["competitorAnalysis"]
    assert payload.tech_stack_suggestion == ["A", "B"]
    assert payload.feature_suggestions == ["F1", "F2"]
    assert payload.mrr_projection.min == 1000
    assert payload.mrr_projection.max == 5000
    assert payload.effort_estimation.months == 3
    assert payload.effort_estimation.team_size == 2


def test_skips_braces_in_leading_commentary():
    text = "Scores use the {1-10} scale. " + json.dumps(VALID_ANALYSIS) + " {trailing}"

    assert extract_json_object(text) == VALID_ANALYSIS


def test_ignores_stray_unclosed_brace():
    text = "Note { this was left open. " + json.dumps(VALID_ANALYSIS)

    assert extract_json_object(text) == VALID_ANALYSIS


def test_braces_inside_strings_do_not_break_matching():
    analysis = {**VALID_ANALYSIS, "competitorAnalysis": "Rivals use {templates} and \"quoted }\" text"}

    assert extract_json_object("prefix " + json.dumps(analysis)) == analysis


def test_first_object_wins():
    first = json.dumps({**VALID_ANALYSIS, "marketDemand": 3})
    second = json.dumps({**VALID_ANALYSIS, "marketDemand": 7})

    assert parse_analysis(f"{first}\n{second}").market_demand == 3


@pytest.mark.parametrize("text", ["", "No JSON at all.", "[1, 2, 3]", "{not: json}", "{\"open\": 1"])
def test_no_object_is_unparsable(text):
    with pytest.raises(UnparsableResponse):
        parse_analysis(text)


@pytest.mark.parametrize(
    "payload",
    [
        _with(marketDemand=15),
        _with(marketDemand=0),
        _with(marketDemand="8"),
        _with(mrrProjection={"min": 5000, "max": 1000}),
        _with(mrrProjection={"min": -1, "max": 1000}),
        _with(effortEstimation={"months": 0, "teamSize": 2}),
        _with(effortEstimation={"months": 2.5, "teamSize": 2}),
        _with(effortEstimation={"months": 3}),
        _with(techStackSuggestion="React"),
        _with(featureSuggestions=[1, 2]),
        _with(competitorAnalysis=""),
        json.dumps({k: v for k, v in VALID_ANALYSIS.items() if k != "competitorAnalysis"}),
    ],
)
def test_schema_violations_are_rejected(payload):
    with pytest.raises(InvalidAnalysisSchema):
        parse_analysis(payload)


def test_fractional_market_demand_is_accepted():
    assert parse_analysis(_with(marketDemand=8.5)).market_demand == 8.5


@pytest.mark.asyncio
async def test_request_analysis_makes_one_call(fake_provider):
    fake_provider.reply_with_analysis()

    result = await analysis_service.request_analysis("X", "Y", ["a"], provider="openai")

    assert result.provider == "openai"
    assert result.payload.market_demand == 8
    assert result.validated_at is not None
    assert len(fake_provider.prompts) == 1
    assert fake_provider.prompts[0][0] == "openai"


@pytest.mark.asyncio
async def test_request_analysis_uses_default_provider(fake_provider):
    fake_provider.reply_with_analysis()

    result = await analysis_service.request_analysis("X", "Y", [])

    assert result.provider == "gemini"


@pytest.mark.asyncio
async def test_request_analysis_rejects_blank_input(fake_provider):
    with pytest.raises(ValidationInput):
        await analysis_service.request_analysis("X", "   ", [])
    with pytest.raises(ValidationInput):
        await analysis_service.request_analysis("X", "Y", [], provider="grok")

    assert fake_provider.prompts == []


@pytest.mark.asyncio
async def test_request_analysis_does_not_retry_bad_output(fake_provider):
    fake_provider.reply_with(_with(marketDemand=15))

    with pytest.raises(InvalidAnalysisSchema) as exc_info:
        await analysis_service.request_analysis("X", "Y", [])

    assert exc_info.value.retryable is False
    assert len(fake_provider.prompts) == 1
