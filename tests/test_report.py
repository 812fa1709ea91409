"""Tests for Markdown report rendering."""

from __future__ import annotations

from riskguard.domain.models import (
    AssessmentReport,
    PowerUser,
    ReportSummary,
    RiskLevel,
    TrendPoint,
)
from riskguard.engine.report import render_markdown
from riskguard.narrative.insights import FALLBACK_INSIGHTS


def _report(**overrides) -> AssessmentReport:
    fields = dict(
        id="report-1",
        date="2026-10-15",
        score=65,
        risk_level=RiskLevel.MEDIUM,
        summary=ReportSummary(
            total_apps=5,
            ai_apps=4,
            shadow_ai_apps=2,
            shadow_usage=50.0,
            unapproved_apps=1,
            data_exfiltration_kb=12,
        ),
        power_users=[PowerUser(email="ana@acme.com", derived_name="ana", prompt_count=3)],
        top_apps_trends=[
            TrendPoint(date="2026-10-14", counts={"ChatGPT": 4, "Claude": 1}),
            TrendPoint(date="2026-10-15", counts={"ChatGPT": 2, "Claude": 0}),
        ],
        ai_insights=FALLBACK_INSIGHTS,
    )
    fields.update(overrides)
    return AssessmentReport(**fields)


def test_render_headline_and_summary() -> None:
    md = render_markdown(_report())
    assert "# Shadow AI Risk Assessment" in md
    assert "**65/100**" in md
    assert "Risk: **Medium**" in md
    assert "| Shadow AI usage | 50.0% |" in md
    assert "| Data sent to unmanaged AI | 12 KB |" in md


def test_render_trend_peak_and_latest() -> None:
    md = render_markdown(_report())
    assert "| ChatGPT | 4 | 2 |" in md
    assert "| Claude | 1 | 0 |" in md


def test_render_power_users_plain_and_redacted() -> None:
    assert "| ana@acme.com | ana | 3 |" in render_markdown(_report())
    redacted = render_markdown(_report(), redact_users=True)
    assert "ana@acme.com" not in redacted
    assert "a***@acme.com" in redacted


def test_render_insights() -> None:
    md = render_markdown(_report())
    assert "## AI Insights" in md
    assert "[CRITICAL] Review Unmanaged AI Applications" in md
    assert "[OPTIMIZATION]" in md


def test_render_empty_sections() -> None:
    md = render_markdown(
        _report(
            power_users=[],
            top_apps_trends=[TrendPoint(date="2026-10-15", counts={})],
            ai_insights=None,
        )
    )
    assert "No AI usage attributed to users." in md
    assert "No AI application activity in the lookback window." in md
    assert "## AI Insights" not in md
