"""Assessment engine — turn platform data into a scored shadow-AI report.

Pipeline:
  1. pre-flight: account id and API key must be present
  2. pull catalog, review status, and access events (each degrades to empty)
  3. score shadow usage, build the forensics index, trends, and power users
  4. ask the narrative model for insights (fixed insights on any failure)
  5. persist the report and an audit entry

Only missing credentials and an unexpected exception escaping every inner
guard reach the caller; neither persists a report.
"""

from __future__ import annotations

import itertools
import time
from collections.abc import Awaitable
from datetime import UTC, datetime
from typing import TypeVar

import structlog

from riskguard.config import AssessmentConfig
from riskguard.domain.errors import (
    AssessmentPipelineError,
    ErrorKind,
    MissingCredentialsError,
    RiskGuardError,
)
from riskguard.domain.interfaces import AssessmentStore, EventSource
from riskguard.domain.models import (
    AIInsights,
    AssessmentReport,
    AuditStatus,
    ReportSummary,
    ReviewStatusSet,
    Settings,
    TrendPoint,
)
from riskguard.engine.forensics import (
    TOP_APPS,
    ForensicsIndex,
    build_index,
    build_trend,
    power_users,
    synthetic_trend,
    top_apps,
)
from riskguard.engine.scoring import calculate_shadow_metrics, health_score, risk_level
from riskguard.narrative.insights import FALLBACK_INSIGHTS, build_insights_prompt, parse_insights
from riskguard.narrative.orchestrator import ChunkSink, NarrativeOrchestrator
from riskguard.security.redaction import mask_email, redact_text

logger = structlog.get_logger()

T = TypeVar("T")

_REPORT_SEQ = itertools.count(1)


def new_report_id() -> str:
    """Time-derived id, unique within the process."""
    return f"report-{int(time.time() * 1000)}-{next(_REPORT_SEQ):04d}"


async def _guarded(fetch: Awaitable[T], default: T, source: str) -> T:
    try:
        return await fetch
    except Exception as exc:  # noqa: BLE001 - an upstream failure degrades to empty data
        logger.warning(
            "upstream_fetch_failed",
            source=source,
            error=type(exc).__name__,
            error_kind=ErrorKind.UPSTREAM_FETCH_FAILURE.value,
        )
        return default


def trend_for(
    index: ForensicsIndex,
    now: datetime,
    days: int,
    synthetic_fallback: bool = True,
) -> list[TrendPoint]:
    """Pick the trending apps and build their daily rows.

    When nothing is trending and fewer than five AI events were seen, the
    synthetic placeholder trend is used instead (if enabled).
    """
    apps = top_apps(index.app_totals, TOP_APPS)
    if not apps and index.ai_event_count < 5 and synthetic_fallback:
        logger.info("trend_synthetic_fallback", ai_events=index.ai_event_count)
        return synthetic_trend(now, days)
    return build_trend(index, apps, now, days)


async def generate_narrative(
    orchestrator: NarrativeOrchestrator | None,
    prompt: str,
    on_chunk: ChunkSink | None = None,
) -> AIInsights:
    if orchestrator is None:
        logger.warning(
            "narrative_model_not_configured",
            error_kind=ErrorKind.NARRATIVE_GENERATION_FAILURE.value,
        )
        return FALLBACK_INSIGHTS
    try:
        result = await orchestrator.generate_insights(prompt, history=(), on_chunk=on_chunk)
    except Exception as exc:  # noqa: BLE001 - insights are optional; fall back
        logger.warning(
            "narrative_generation_failed",
            error=type(exc).__name__,
            error_kind=ErrorKind.NARRATIVE_GENERATION_FAILURE.value,
        )
        return FALLBACK_INSIGHTS
    return parse_insights(result.content)


async def run_assessment(
    settings: Settings,
    source: EventSource,
    store: AssessmentStore,
    orchestrator: NarrativeOrchestrator | None = None,
    config: AssessmentConfig | None = None,
    ai_type_id: int = 25,
    on_chunk: ChunkSink | None = None,
    now: datetime | None = None,
) -> AssessmentReport:
    """Run one assessment and persist the resulting report.

    Raises:
        MissingCredentialsError: if the account id or API key is empty.
        AssessmentPipelineError: if an unexpected error escapes the pipeline.
    """
    config = config or AssessmentConfig()
    user = settings.email

    if not settings.has_credentials:
        logger.warning(
            "assessment_missing_credentials",
            error_kind=ErrorKind.MISSING_CREDENTIALS.value,
        )
        store.add_log(
            "Assessment Failed",
            user,
            AuditStatus.FAILED,
            "Account ID and API key are required",
        )
        raise MissingCredentialsError("Account ID and API key are required to run an assessment")

    log = logger.bind(account=settings.account_id, user=mask_email(user))
    try:
        report = await _run_pipeline(source, orchestrator, config, ai_type_id, on_chunk, now)
        store.add_report(report)
    except RiskGuardError:
        raise
    except Exception as exc:
        detail = f"{type(exc).__name__}: {redact_text(str(exc))}"
        log.error(
            "assessment_failed",
            error=detail,
            error_kind=ErrorKind.ASSESSMENT_PIPELINE_FAILURE.value,
        )
        store.add_log("Assessment Failed", user, AuditStatus.FAILED, detail)
        raise AssessmentPipelineError("Assessment failed; no report was saved") from exc

    store.add_log(
        "Report Generated",
        user,
        AuditStatus.SUCCESS,
        f"{report.id}: score {report.score}, risk {report.risk_level.value}",
    )
    log.info("assessment_completed", report_id=report.id, score=report.score)
    return report


async def _run_pipeline(
    source: EventSource,
    orchestrator: NarrativeOrchestrator | None,
    config: AssessmentConfig,
    ai_type_id: int,
    on_chunk: ChunkSink | None,
    now: datetime | None,
) -> AssessmentReport:
    now = (now or datetime.now(UTC)).astimezone(UTC)
    days = config.lookback_days

    catalog = await _guarded(source.fetch_app_catalog(), [], "app_catalog")
    review = await _guarded(source.fetch_review_status(), ReviewStatusSet(), "review_status")
    metrics = calculate_shadow_metrics(catalog, review, ai_type_id)

    events = await _guarded(source.fetch_access_events(days), [], "access_events")
    index = build_index(events, config.compiled_patterns(), review.managed_ids, now, days)
    trends = trend_for(index, now, days, config.synthetic_trend_fallback)

    prompt = build_insights_prompt(
        metrics.total_ai, metrics.shadow_count, metrics.shadow_usage, index.exfiltration_kb
    )
    insights = await generate_narrative(orchestrator, prompt, on_chunk)

    summary = ReportSummary(
        total_apps=metrics.total_apps,
        ai_apps=metrics.total_ai,
        shadow_ai_apps=metrics.shadow_count,
        shadow_usage=metrics.shadow_usage,
        unapproved_apps=metrics.unapproved_ai_count,
        data_exfiltration_kb=index.exfiltration_kb,
    )
    return AssessmentReport(
        id=new_report_id(),
        date=now.date().isoformat(),
        score=health_score(metrics.shadow_usage, metrics.unapproved_ai_count),
        risk_level=risk_level(metrics.shadow_usage),
        summary=summary,
        power_users=power_users(index.prompts),
        top_apps_trends=trends,
        ai_insights=insights,
    )

