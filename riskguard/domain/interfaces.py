"""Domain collaborator interfaces.

These are pure protocols. Storage, HTTP and SDK details stay out of the domain.
"""

from __future__ import annotations

from typing import Any, Protocol

from riskguard.domain.models import (
    AccessEvent,
    AppCatalogEntry,
    AssessmentReport,
    AuditLog,
    AuditStatus,
    ReviewStatusSet,
    Settings,
)


class EventSource(Protocol):
    """Pulls the three data sets an assessment needs from the identity platform.

    Implementations never raise on upstream failure; they return empty data.
    """

    async def fetch_app_catalog(self) -> list[AppCatalogEntry]: ...

    async def fetch_review_status(self) -> ReviewStatusSet: ...

    async def fetch_access_events(self, lookback_days: int) -> list[AccessEvent]: ...


class SettingsRepository(Protocol):
    def get_settings(self) -> Settings:
        """Return stored settings, or defaults when nothing is stored."""
        ...

    def update_settings(self, settings: Settings) -> None: ...


class ReportRepository(Protocol):
    """Capped, newest-first report history."""

    def add_report(self, report: AssessmentReport) -> None: ...

    def list_reports(self) -> list[AssessmentReport]: ...

    def get_report_by_id(self, report_id: str) -> AssessmentReport | None: ...

    def remove_report(self, report_id: str) -> None: ...


class AuditLogRepository(Protocol):
    def add_log(
        self,
        action: str,
        user: str,
        status: AuditStatus,
        description: str | None = None,
    ) -> AuditLog: ...

    def get_logs(self) -> list[AuditLog]: ...


class ToolProvider(Protocol):
    """External source of extra tools for the narrative model."""

    def get_tool_definitions(self) -> list[dict[str, Any]]: ...

    async def execute_tool(self, name: str, args: dict[str, Any]) -> Any:
        """Run a tool by name. Raises UnknownToolError if the name is unknown."""
        ...


class AssessmentStore(ReportRepository, AuditLogRepository, Protocol):
    """Report history plus audit log, as one store."""
