"""Tests for the shadow-AI scoring engine."""

from __future__ import annotations

import pytest

from riskguard.domain.models import AppCatalogEntry, ReviewStatusSet, RiskLevel
from riskguard.engine.scoring import (
    ai_app_ids,
    calculate_shadow_metrics,
    health_score,
    risk_level,
)

AI = 25


def _entry(app_id: str, type_id: int | None = AI) -> AppCatalogEntry:
    return AppCatalogEntry(id=app_id, application_type_id=type_id)


def _review(
    approved: set[str] | None = None,
    in_review: set[str] | None = None,
    unapproved: set[str] | None = None,
) -> ReviewStatusSet:
    return ReviewStatusSet(
        approved=frozenset(approved or ()),
        in_review=frozenset(in_review or ()),
        unapproved=frozenset(unapproved or ()),
    )


class TestAiAppIds:
    def test_filters_by_category(self) -> None:
        catalog = [_entry("a"), _entry("b", 7), _entry("c", None)]
        assert ai_app_ids(catalog, AI) == {"a"}

    def test_deduplicates_ids(self) -> None:
        catalog = [_entry("a"), _entry("a"), _entry("b")]
        assert ai_app_ids(catalog, AI) == {"a", "b"}


class TestShadowMetrics:
    def test_no_ai_apps_means_zero_usage(self) -> None:
        m = calculate_shadow_metrics([_entry("x", 7)], _review(), AI)
        assert m.total_ai == 0
        assert m.shadow_count == 0
        assert m.shadow_usage == 0.0

    def test_all_unmanaged(self) -> None:
        m = calculate_shadow_metrics([_entry("a"), _entry("b")], _review(), AI)
        assert m.shadow_count == 2
        assert m.shadow_usage == 100.0

    def test_managed_counts_any_review_decision(self) -> None:
        catalog = [_entry(i) for i in "abcd"]
        review = _review(approved={"a"}, in_review={"b"}, unapproved={"c"})
        m = calculate_shadow_metrics(catalog, review, AI)
        assert m.managed_ai_ids == {"a", "b", "c"}
        assert m.shadow_count == 1
        assert m.shadow_usage == pytest.approx(25.0)

    def test_overlapping_lists_use_set_semantics(self) -> None:
        catalog = [_entry("a"), _entry("b")]
        review = _review(approved={"a"}, in_review={"a"}, unapproved={"a"})
        m = calculate_shadow_metrics(catalog, review, AI)
        assert m.shadow_count == 1

    def test_managed_non_ai_ids_do_not_reduce_shadow_count(self) -> None:
        catalog = [_entry("a"), _entry("z", 7)]
        review = _review(approved={"z", "other"})
        m = calculate_shadow_metrics(catalog, review, AI)
        assert m.shadow_count == 1
        assert m.shadow_usage == 100.0

    def test_unapproved_counts_only_ai_ids(self) -> None:
        catalog = [_entry("a"), _entry("b"), _entry("z", 7)]
        review = _review(unapproved={"a", "z", "ghost"})
        m = calculate_shadow_metrics(catalog, review, AI)
        assert m.unapproved_ai_count == 1

    def test_total_apps_counts_distinct_catalog_ids(self) -> None:
        catalog = [_entry("a"), _entry("a"), _entry("z", 7)]
        assert calculate_shadow_metrics(catalog, _review(), AI).total_apps == 2

    @pytest.mark.parametrize("managed", [0, 1, 3, 7, 10])
    def test_usage_stays_in_bounds(self, managed: int) -> None:
        catalog = [_entry(str(i)) for i in range(10)]
        review = _review(approved={str(i) for i in range(managed)})
        m = calculate_shadow_metrics(catalog, review, AI)
        assert m.shadow_count == max(0, 10 - managed)
        assert 0.0 <= m.shadow_usage <= 100.0


class TestHealthScore:
    def test_perfect_score(self) -> None:
        assert health_score(0.0, 0) == 100

    def test_formula(self) -> None:
        # 100 - 30/1.5 - 3*2 = 74
        assert health_score(30.0, 3) == 74

    def test_clamped_at_zero(self) -> None:
        assert health_score(100.0, 500) == 0

    def test_clamped_at_hundred(self) -> None:
        assert health_score(-300.0, 0) == 100

    def test_always_integer(self) -> None:
        assert isinstance(health_score(33.3, 1), int)


class TestRiskLevel:
    @pytest.mark.parametrize(
        ("usage", "expected"),
        [
            (50.0001, RiskLevel.HIGH),
            (50.0, RiskLevel.MEDIUM),
            (20.0001, RiskLevel.MEDIUM),
            (20.0, RiskLevel.LOW),
            (0.0, RiskLevel.LOW),
            (100.0, RiskLevel.HIGH),
        ],
    )
    def test_boundaries(self, usage: float, expected: RiskLevel) -> None:
        assert risk_level(usage) == expected
