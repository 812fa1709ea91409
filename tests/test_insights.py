"""Tests for insights prompt building and model-output parsing."""

from __future__ import annotations

import json

import pytest

from riskguard.domain.models import RecommendationType
from riskguard.narrative.insights import (
    FALLBACK_INSIGHTS,
    build_insights_prompt,
    extract_json,
    fallback_payload,
    parse_insights,
)

_PAYLOAD = {
    "summary": "Shadow AI is limited.",
    "recommendations": [{"title": "t", "description": "d", "type": "Policy"}],
}


class TestExtractJson:
    def test_bare_json(self) -> None:
        assert extract_json('{"a": 1}') == {"a": 1}

    def test_fenced_block(self) -> None:
        text = 'Here you go:\n```json\n{"a": 2}\n```\nThanks.'
        assert extract_json(text) == {"a": 2}

    def test_fence_without_language(self) -> None:
        assert extract_json('```\n{"a": 3}\n```') == {"a": 3}

    def test_braces_inside_prose(self) -> None:
        assert extract_json('Result: {"a": {"b": 4}} done') == {"a": {"b": 4}}

    def test_nothing_parses(self) -> None:
        assert extract_json("no json here") is None
        assert extract_json("{broken") is None


class TestParseInsights:
    def test_valid_payload(self) -> None:
        insights = parse_insights(json.dumps(_PAYLOAD))
        assert insights.summary == "Shadow AI is limited."
        assert insights.recommendations[0].type is RecommendationType.POLICY

    def test_unknown_recommendation_type_falls_back(self) -> None:
        bad = {**_PAYLOAD, "recommendations": [{"title": "t", "type": "urgent"}]}
        assert parse_insights(json.dumps(bad)) == FALLBACK_INSIGHTS

    @pytest.mark.parametrize("recs", [5, True, "critical", {"type": "policy"}])
    def test_non_list_recommendations_fall_back(self, recs) -> None:
        payload = json.dumps({"summary": "ok", "recommendations": recs})
        assert parse_insights(payload) == FALLBACK_INSIGHTS

    def test_missing_summary_falls_back(self) -> None:
        assert parse_insights('{"recommendations": []}') == FALLBACK_INSIGHTS

    def test_non_object_falls_back(self) -> None:
        assert parse_insights("[1, 2, 3]") == FALLBACK_INSIGHTS
        assert parse_insights("") == FALLBACK_INSIGHTS


def test_fallback_payload_parses_to_fixed_insights() -> None:
    assert parse_insights(fallback_payload()) == FALLBACK_INSIGHTS
    assert len(FALLBACK_INSIGHTS.recommendations) == 3


def test_prompt_includes_metrics() -> None:
    prompt = build_insights_prompt(12, 5, 41.666, 2048)
    assert "AI applications discovered: 12" in prompt
    assert "Unmanaged (shadow) AI applications: 5" in prompt
    assert "Shadow AI usage: 41.7%" in prompt
    assert "2048 KB" in prompt
