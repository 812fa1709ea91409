"""Executive-summary prompt, fallback payload, and model-output parsing."""

from __future__ import annotations

import json
import re
from typing import Any

import structlog

from riskguard.domain.errors import ErrorKind
from riskguard.domain.models import AIInsights, Recommendation, RecommendationType

logger = structlog.get_logger()

FALLBACK_INSIGHTS = AIInsights(
    summary=(
        "Automated analysis was unavailable for this assessment. The figures above are "
        "computed directly from gateway telemetry; unmanaged AI applications and outbound "
        "data volume should be reviewed manually."
    ),
    recommendations=[
        Recommendation(
            title="Review Unmanaged AI Applications",
            description=(
                "Classify every AI application without a review decision as approved, "
                "in review, or unapproved, and block unapproved ones at the gateway."
            ),
            type=RecommendationType.CRITICAL,
        ),
        Recommendation(
            title="Enable DLP for AI Traffic",
            description=(
                "Apply data loss prevention profiles to outbound traffic toward AI "
                "applications to detect sensitive uploads."
            ),
            type=RecommendationType.POLICY,
        ),
        Recommendation(
            title="Consolidate Sanctioned AI Tools",
            description=(
                "Steer heavy users toward managed, licensed AI tools to reduce spend "
                "and shadow usage."
            ),
            type=RecommendationType.OPTIMIZATION,
        ),
    ],
)

_FENCED_JSON = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")


def fallback_payload() -> str:
    """The fixed insights as a JSON document, so downstream parsing never fails."""
    return json.dumps(FALLBACK_INSIGHTS.to_dict())


def build_insights_prompt(
    total_ai: int,
    shadow_count: int,
    shadow_usage: float,
    exfiltration_kb: int,
) -> str:
    return (
        "Produce an executive summary of this organization's shadow AI exposure.\n"
        f"- AI applications discovered: {total_ai}\n"
        f"- Unmanaged (shadow) AI applications: {shadow_count}\n"
        f"- Shadow AI usage: {shadow_usage:.1f}%\n"
        f"- Data sent to unmanaged AI applications: {exfiltration_kb} KB\n\n"
        "Respond with JSON only, in the form "
        '{"summary": "...", "recommendations": [{"title": "...", "description": "...", '
        '"type": "critical" | "policy" | "optimization"}]}'
    )


def extract_json(content: str) -> Any | None:
    """Pull a JSON value out of model text.

    Tries, in order: the whole text, the first fenced code block, and the
    span from the first '{' to the last '}'. None if none of them parse.
    """
    try:
        return json.loads(content)
    except ValueError:
        pass

    match = _FENCED_JSON.search(content)
    if match:
        try:
            return json.loads(match.group(1).strip())
        except ValueError:
            pass

    start = content.find("{")
    end = content.rfind("}")
    if start != -1 and end > start:
        try:
            return json.loads(content[start : end + 1])
        except ValueError:
            pass
    return None


def parse_insights(content: str) -> AIInsights:
    """Turn model output into AIInsights, or the fixed insights if unusable."""
    data = extract_json(content or "")
    if isinstance(data, dict):
        try:
            return AIInsights.from_dict(data)
        except ValueError as exc:
            logger.warning(
                "insights_payload_invalid",
                error=str(exc),
                error_kind=ErrorKind.NARRATIVE_GENERATION_FAILURE.value,
            )
    else:
        logger.warning(
            "insights_payload_not_json",
            error_kind=ErrorKind.NARRATIVE_GENERATION_FAILURE.value,
        )
    return FALLBACK_INSIGHTS
