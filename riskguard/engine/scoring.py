"""Shadow-AI scoring engine.

Turns catalog and review-status sets into the headline figures of a report.

  shadow count  = max(0, |ai ids| - |ai ids ∩ managed ids|)
  shadow usage  = shadow count / |ai ids| * 100   (0 when there are no AI apps)
  health score  = clamp(0, 100, 100 - shadow usage / 1.5 - unapproved AI * 2)
  risk level    = High above 50%, Medium above 20%, otherwise Low
"""

from __future__ import annotations

from dataclasses import dataclass

from riskguard.domain.models import AppCatalogEntry, ReviewStatusSet, RiskLevel

_HIGH_THRESHOLD = 50.0
_MEDIUM_THRESHOLD = 20.0


@dataclass(frozen=True)
class ShadowMetrics:
    total_apps: int
    ai_ids: frozenset[str]
    managed_ai_ids: frozenset[str]
    shadow_count: int
    shadow_usage: float
    unapproved_ai_count: int

    @property
    def total_ai(self) -> int:
        return len(self.ai_ids)


def ai_app_ids(catalog: list[AppCatalogEntry], ai_type_id: int) -> frozenset[str]:
    """Deduplicated ids of catalog entries in the AI category."""
    return frozenset(e.id for e in catalog if e.application_type_id == ai_type_id)


def calculate_shadow_metrics(
    catalog: list[AppCatalogEntry],
    review: ReviewStatusSet,
    ai_type_id: int,
) -> ShadowMetrics:
    ai_ids = ai_app_ids(catalog, ai_type_id)
    managed_ai = ai_ids & review.managed_ids
    total_ai = len(ai_ids)
    shadow_count = max(0, total_ai - len(managed_ai))
    shadow_usage = shadow_count / total_ai * 100 if total_ai else 0.0

    return ShadowMetrics(
        total_apps=len({e.id for e in catalog}),
        ai_ids=ai_ids,
        managed_ai_ids=managed_ai,
        shadow_count=shadow_count,
        shadow_usage=shadow_usage,
        unapproved_ai_count=len(review.unapproved & ai_ids),
    )


def health_score(shadow_usage: float, unapproved_ai_count: int) -> int:
    raw = 100 - shadow_usage / 1.5 - unapproved_ai_count * 2
    return int(round(min(100.0, max(0.0, raw))))


def risk_level(shadow_usage: float) -> RiskLevel:
    if shadow_usage > _HIGH_THRESHOLD:
        return RiskLevel.HIGH
    if shadow_usage > _MEDIUM_THRESHOLD:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW
