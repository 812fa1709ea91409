"""Forensics engine — aggregate AI traffic over the lookback window.

One sequential pass over access events builds:
  by_day       UTC date -> app name -> set of distinct users
  app_totals   app name -> set of distinct users across the window
  prompts      user email -> number of AI interactions

Insertion order of every mapping is first-seen order, which is what breaks
ranking ties.
"""

from __future__ import annotations

import math
import re
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from riskguard.domain.models import AccessEvent, PowerUser, TrendPoint

TOP_APPS = 5
TOP_POWER_USERS = 3

FALLBACK_APPS: tuple[tuple[str, int, int], ...] = (
    # name, baseline users, daily swing
    ("ChatGPT", 42, 9),
    ("Claude", 27, 6),
    ("Gemini", 18, 5),
    ("Copilot", 14, 4),
    ("Perplexity", 8, 3),
)


@dataclass
class ForensicsIndex:
    """Distinct users per app, per calendar day and across the whole window."""

    by_day: dict[str, dict[str, set[str]]] = field(
        default_factory=lambda: defaultdict(lambda: defaultdict(set))
    )
    app_totals: dict[str, set[str]] = field(default_factory=lambda: defaultdict(set))
    prompts: dict[str, int] = field(default_factory=lambda: defaultdict(int))
    ai_event_count: int = 0
    unmanaged_bytes: int = 0

    def record(self, event: AccessEvent, managed_ids: frozenset[str]) -> None:
        """Add one in-window AI event. Re-adding a user for the same app/day is a no-op."""
        self.ai_event_count += 1
        if event.gateway_app_id not in managed_ids:
            self.unmanaged_bytes += event.bytes_sent
        if not event.user_email:
            return
        day = event.timestamp.astimezone(UTC).date().isoformat()
        app = event.gateway_app_name
        self.by_day[day][app].add(event.user_email)
        self.app_totals[app].add(event.user_email)
        self.prompts[event.user_email] += 1

    def users_on(self, day: str, app: str) -> int:
        apps = self.by_day.get(day)
        if not apps:
            return 0
        return len(apps.get(app, ()))

    @property
    def exfiltration_kb(self) -> int:
        return self.unmanaged_bytes // 1024


def is_ai_traffic(event: AccessEvent, patterns: list[re.Pattern[str]]) -> bool:
    return any(p.search(event.gateway_app_name) for p in patterns)


def build_index(
    events: list[AccessEvent],
    patterns: list[re.Pattern[str]],
    managed_ids: frozenset[str],
    now: datetime,
    lookback_days: int,
) -> ForensicsIndex:
    """Fold AI events inside the lookback window into a ForensicsIndex.

    Events older than the window or whose app name matches no AI pattern
    are skipped.
    """
    cutoff = now - timedelta(days=lookback_days)
    index = ForensicsIndex()
    for event in events:
        if event.timestamp < cutoff:
            continue
        if not is_ai_traffic(event, patterns):
            continue
        index.record(event, managed_ids)
    return index


def top_apps(app_totals: dict[str, set[str]], n: int = TOP_APPS) -> list[str]:
    """App names ranked by distinct users, descending. Ties keep first-seen order."""
    ranked = sorted(app_totals.items(), key=lambda item: len(item[1]), reverse=True)
    return [name for name, _ in ranked[:n]]


def window_days(now: datetime, days: int) -> list[str]:
    """ISO UTC dates of the lookback window, oldest first, ending today."""
    today = now.astimezone(UTC).date()
    return [(today - timedelta(days=offset)).isoformat() for offset in range(days - 1, -1, -1)]


def build_trend(
    index: ForensicsIndex, apps: list[str], now: datetime, days: int
) -> list[TrendPoint]:
    return [
        TrendPoint(date=day, counts={app: index.users_on(day, app) for app in apps})
        for day in window_days(now, days)
    ]


def synthetic_trend(now: datetime, days: int) -> list[TrendPoint]:
    """Placeholder trend for the fallback apps when telemetry is too sparse.

    Values are a fixed function of the day position, so the same window
    always produces the same chart.
    """
    points = []
    for i, day in enumerate(window_days(now, days)):
        counts = {}
        for phase, (name, base, swing) in enumerate(FALLBACK_APPS):
            counts[name] = max(0, base + round(swing * math.sin(i / 4 + phase)) + i // 6)
        points.append(TrendPoint(date=day, counts=counts))
    return points


def power_users(prompts: dict[str, int], n: int = TOP_POWER_USERS) -> list[PowerUser]:
    ranked = sorted(prompts.items(), key=lambda item: item[1], reverse=True)
    return [
        PowerUser(email=email, derived_name=email.split("@", 1)[0], prompt_count=count)
        for email, count in ranked[:n]
    ]
