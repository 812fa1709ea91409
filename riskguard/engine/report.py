"""Report rendering.

Produces a Markdown shadow-AI risk report from a stored AssessmentReport.
"""

from __future__ import annotations

from riskguard.domain.models import AssessmentReport, RecommendationType
from riskguard.security.redaction import mask_email

_REC_LABELS = {
    RecommendationType.CRITICAL: "CRITICAL",
    RecommendationType.POLICY: "POLICY",
    RecommendationType.OPTIMIZATION: "OPTIMIZATION",
}


def render_markdown(report: AssessmentReport, redact_users: bool = False) -> str:
    """Render a report as a Markdown string."""
    lines: list[str] = []
    s = report.summary

    lines.append("# Shadow AI Risk Assessment")
    lines.append("")
    lines.append(f"Report: `{report.id}` | Date: {report.date} | Status: {report.status}")
    lines.append("")

    # Score summary
    lines.append("## Health Score")
    lines.append("")
    lines.append(f"**{report.score}/100** — Risk: **{report.risk_level.value}**")
    lines.append("")

    lines.append("## Summary")
    lines.append("")
    lines.append("| Metric | Value |")
    lines.append("|---|---|")
    lines.append(f"| Applications in catalog | {s.total_apps} |")
    lines.append(f"| AI applications | {s.ai_apps} |")
    lines.append(f"| Shadow AI applications | {s.shadow_ai_apps} |")
    lines.append(f"| Shadow AI usage | {s.shadow_usage:.1f}% |")
    lines.append(f"| Unapproved AI applications | {s.unapproved_apps} |")
    lines.append(f"| Data sent to unmanaged AI | {s.data_exfiltration_kb} KB |")
    lines.append("")

    # Trending apps: totals over the window
    if report.top_apps_trends:
        apps = list(report.top_apps_trends[0].counts)
        lines.append("## Trending AI Applications")
        lines.append("")
        if apps:
            lines.append("| Application | Peak daily users | Latest daily users |")
            lines.append("|---|---|---|")
            for app in apps:
                peak = max(p.counts.get(app, 0) for p in report.top_apps_trends)
                latest = report.top_apps_trends[-1].counts.get(app, 0)
                lines.append(f"| {app} | {peak} | {latest} |")
        else:
            lines.append("No AI application activity in the lookback window.")
        lines.append("")

    lines.append("## Power Users")
    lines.append("")
    if not report.power_users:
        lines.append("No AI usage attributed to users.")
    else:
        lines.append("| User | Name | Interactions |")
        lines.append("|---|---|---|")
        for u in report.power_users:
            email = mask_email(u.email) if redact_users else u.email
            lines.append(f"| {email} | {u.derived_name} | {u.prompt_count} |")
    lines.append("")

    # Insights (only if any)
    if report.ai_insights is not None:
        lines.append("## AI Insights")
        lines.append("")
        lines.append(report.ai_insights.summary)
        lines.append("")
        for rec in report.ai_insights.recommendations:
            lines.append(f"- **[{_REC_LABELS[rec.type]}] {rec.title}** — {rec.description}")
        lines.append("")

    return "\n".join(lines)
