"""Core domain models for shadow-AI risk assessment.

These models have ZERO dependencies on storage, CLI, HTTP, or any LLM SDK.
Reports serialize to camelCase dictionaries so stored history stays readable
by any consumer of the report document.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class RiskLevel(Enum):
    """Overall risk band derived from the shadow usage percentage."""

    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class RecommendationType(Enum):
    CRITICAL = "critical"
    POLICY = "policy"
    OPTIMIZATION = "optimization"


class AuditStatus(Enum):
    SUCCESS = "Success"
    FAILED = "Failed"
    WARNING = "Warning"
    ERROR = "Error"


@dataclass(frozen=True)
class CloudflareContact:
    name: str = "Cloudflare Admin"
    role: str = "Solutions Engineer"
    email: str = "se@cloudflare.com"
    team: str = "Security Specialist"


@dataclass(frozen=True)
class CustomerContact:
    customer_name: str = "Enterprise Corp"
    name: str = "Security Director"
    role: str = "CISO"
    email: str = "ciso@enterprise.com"


@dataclass(frozen=True)
class Settings:
    """Account credentials for the identity platform plus report contacts."""

    account_id: str = ""
    email: str = ""
    api_key: str = ""
    cloudflare_contact: CloudflareContact = field(default_factory=CloudflareContact)
    customer_contact: CustomerContact = field(default_factory=CustomerContact)

    @property
    def has_credentials(self) -> bool:
        return bool(self.account_id.strip()) and bool(self.api_key.strip())

    def to_dict(self) -> dict[str, Any]:
        return {
            "accountId": self.account_id,
            "email": self.email,
            "apiKey": self.api_key,
            "cloudflareContact": {
                "name": self.cloudflare_contact.name,
                "role": self.cloudflare_contact.role,
                "email": self.cloudflare_contact.email,
                "team": self.cloudflare_contact.team,
            },
            "customerContact": {
                "customerName": self.customer_contact.customer_name,
                "name": self.customer_contact.name,
                "role": self.customer_contact.role,
                "email": self.customer_contact.email,
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        cf = data.get("cloudflareContact") or {}
        cust = data.get("customerContact") or {}
        defaults_cf = CloudflareContact()
        defaults_cust = CustomerContact()
        return cls(
            account_id=str(data.get("accountId") or ""),
            email=str(data.get("email") or ""),
            api_key=str(data.get("apiKey") or ""),
            cloudflare_contact=CloudflareContact(
                name=cf.get("name", defaults_cf.name),
                role=cf.get("role", defaults_cf.role),
                email=cf.get("email", defaults_cf.email),
                team=cf.get("team", defaults_cf.team),
            ),
            customer_contact=CustomerContact(
                customer_name=cust.get("customerName", defaults_cust.customer_name),
                name=cust.get("name", defaults_cust.name),
                role=cust.get("role", defaults_cust.role),
                email=cust.get("email", defaults_cust.email),
            ),
        )


@dataclass(frozen=True)
class AppCatalogEntry:
    """One application in the platform's application-type catalog."""

    id: str
    application_type_id: int | None
    name: str = ""


@dataclass(frozen=True)
class ReviewStatusSet:
    """Application ids carrying an explicit review decision.

    The three lists are disjoint by intent only; overlap is tolerated.
    """

    approved: frozenset[str] = frozenset()
    in_review: frozenset[str] = frozenset()
    unapproved: frozenset[str] = frozenset()

    @property
    def managed_ids(self) -> frozenset[str]:
        return self.approved | self.in_review | self.unapproved


@dataclass(frozen=True)
class AccessEvent:
    """A single gateway/access log record."""

    timestamp: datetime
    gateway_app_id: str
    gateway_app_name: str
    user_email: str
    bytes_sent: int = 0


@dataclass(frozen=True)
class PowerUser:
    email: str
    derived_name: str
    """Local-part of the email, before '@'."""

    prompt_count: int

    def to_dict(self) -> dict[str, Any]:
        return {"email": self.email, "name": self.derived_name, "prompts": self.prompt_count}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PowerUser:
        return cls(
            email=data["email"],
            derived_name=data.get("name", ""),
            prompt_count=int(data.get("prompts", 0)),
        )


@dataclass(frozen=True)
class TrendPoint:
    """One day of the trending-apps chart: distinct users per app."""

    date: str
    counts: dict[str, int]

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date, **self.counts}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TrendPoint:
        counts = {k: int(v) for k, v in data.items() if k != "date"}
        return cls(date=data["date"], counts=counts)


@dataclass(frozen=True)
class Recommendation:
    title: str
    description: str
    type: RecommendationType

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "description": self.description, "type": self.type.value}


@dataclass(frozen=True)
class AIInsights:
    summary: str
    recommendations: list[Recommendation]

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": self.summary,
            "recommendations": [r.to_dict() for r in self.recommendations],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AIInsights:
        """Build insights from a parsed model payload.

        Raises:
            ValueError: if the payload is missing the summary or carries
                a recommendation with an unknown type.
        """
        summary = data.get("summary")
        if not isinstance(summary, str) or not summary.strip():
            raise ValueError("Insights payload missing 'summary'")
        raw_recs = data.get("recommendations") or []
        if not isinstance(raw_recs, list):
            raise ValueError("Insights 'recommendations' must be a list")
        recs = []
        for raw in raw_recs:
            if not isinstance(raw, dict):
                raise ValueError("Recommendation entries must be objects")
            try:
                rec_type = RecommendationType(str(raw.get("type", "")).lower())
            except ValueError as err:
                raise ValueError(f"Invalid recommendation type '{raw.get('type')}'") from err
            recs.append(
                Recommendation(
                    title=str(raw.get("title", "")),
                    description=str(raw.get("description", "")),
                    type=rec_type,
                )
            )
        return cls(summary=summary, recommendations=recs)


@dataclass(frozen=True)
class ReportSummary:
    total_apps: int
    ai_apps: int
    shadow_ai_apps: int
    shadow_usage: float
    """Percentage of AI apps without a review decision (0.0–100.0)."""

    unapproved_apps: int
    data_exfiltration_kb: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalApps": self.total_apps,
            "aiApps": self.ai_apps,
            "shadowAiApps": self.shadow_ai_apps,
            "shadowUsage": self.shadow_usage,
            "unapprovedApps": self.unapproved_apps,
            "dataExfiltrationKB": self.data_exfiltration_kb,
            "dataExfiltrationRisk": f"{self.data_exfiltration_kb} KB",
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReportSummary:
        return cls(
            total_apps=int(data.get("totalApps", 0)),
            ai_apps=int(data.get("aiApps", 0)),
            shadow_ai_apps=int(data.get("shadowAiApps", 0)),
            shadow_usage=float(data.get("shadowUsage", 0.0)),
            unapproved_apps=int(data.get("unapprovedApps", 0)),
            data_exfiltration_kb=int(data.get("dataExfiltrationKB", 0)),
        )


@dataclass(frozen=True)
class AssessmentReport:
    """Point-in-time shadow-AI risk report. Never mutated after creation."""

    id: str
    date: str
    score: int
    """0 (critical risk) to 100 (no shadow AI exposure)."""

    risk_level: RiskLevel
    summary: ReportSummary
    power_users: list[PowerUser]
    top_apps_trends: list[TrendPoint]
    app_library: list[dict[str, Any]] = field(default_factory=list)
    """Filled by a separate enrichment step; empty at creation time."""

    ai_insights: AIInsights | None = None
    status: str = "Completed"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "date": self.date,
            "status": self.status,
            "score": self.score,
            "riskLevel": self.risk_level.value,
            "summary": self.summary.to_dict(),
            "powerUsers": [u.to_dict() for u in self.power_users],
            "appLibrary": list(self.app_library),
            "securityCharts": {"topAppsTrends": [p.to_dict() for p in self.top_apps_trends]},
        }
        if self.ai_insights is not None:
            data["aiInsights"] = self.ai_insights.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AssessmentReport:
        charts = data.get("securityCharts") or {}
        insights = data.get("aiInsights")
        return cls(
            id=data["id"],
            date=data["date"],
            status=data.get("status", "Completed"),
            score=int(data["score"]),
            risk_level=RiskLevel(data["riskLevel"]),
            summary=ReportSummary.from_dict(data.get("summary") or {}),
            power_users=[PowerUser.from_dict(u) for u in data.get("powerUsers") or []],
            top_apps_trends=[TrendPoint.from_dict(p) for p in charts.get("topAppsTrends") or []],
            app_library=list(data.get("appLibrary") or []),
            ai_insights=AIInsights.from_dict(insights) if insights else None,
        )


@dataclass(frozen=True)
class AuditLog:
    id: str
    timestamp: str
    action: str
    user: str
    status: AuditStatus
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = {
            "id": self.id,
            "timestamp": self.timestamp,
            "action": self.action,
            "user": self.user,
            "status": self.status.value,
        }
        if self.description is not None:
            data["description"] = self.description
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuditLog:
        return cls(
            id=data["id"],
            timestamp=data["timestamp"],
            action=data["action"],
            user=data.get("user", ""),
            status=AuditStatus(data.get("status", "Success")),
            description=data.get("description"),
        )


@dataclass(frozen=True)
class Message:
    """A prior conversation turn handed to the narrative model."""

    role: str
    content: str


@dataclass
class ToolCall:
    """A model-requested function invocation.

    Lives for one exchange only: built from the model's request, filled by
    the dispatcher, consumed by the follow-up call, then discarded.
    """

    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)
    result: Any = None
