"""Zero-trust platform event source.

Pulls the application-type catalog, the app review-status lists, and the
access/gateway events for the lookback window. This is a read-only client:
it never modifies anything on the platform.

Response format (Cloudflare v4 envelope):
- Every body is ``{"success": bool, "result": ..., "result_info": {...}}``
- Paginated listings carry ``result_info.page`` / ``result_info.total_pages``
- Catalog entries have: id, application_type_id, name
- Review status ``result`` is an object with approved_apps,
  in_review_apps, unapproved_apps (lists of ids)
- Access events have: created_at (or datetime), app_uid, app_domain,
  user_email, bytes_sent (field names vary slightly between log sources)

Every fetch degrades to an empty collection on transport errors, non-2xx
responses, and malformed bodies. Nothing here raises to the caller.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import structlog

from riskguard.config import PlatformConfig
from riskguard.domain.errors import ErrorKind
from riskguard.domain.models import AccessEvent, AppCatalogEntry, ReviewStatusSet, Settings

logger = structlog.get_logger()

_MAX_PAGES = 50
_PER_PAGE = 1000

_TIMESTAMP_KEYS = ("timestamp", "datetime", "created_at", "Datetime")
_APP_ID_KEYS = ("gateway_app_id", "app_uid", "app_id", "ApplicationID")
_APP_NAME_KEYS = ("gateway_app_name", "app_name", "app_domain", "ApplicationName")
_EMAIL_KEYS = ("user_email", "email", "Email")
_BYTES_KEYS = ("bytes_sent", "BytesSent", "request_bytes")


def _first(record: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = record.get(key)
        if value not in (None, ""):
            return value
    return None


def _parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO 8601 timestamp (Z or offset suffix) into UTC. None if unusable."""
    if not isinstance(value, str) or not value:
        return None
    try:
        ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if ts.tzinfo is None:
        return ts.replace(tzinfo=UTC)
    return ts.astimezone(UTC)


def _to_int(value: Any) -> int:
    try:
        return max(0, int(value))
    except (TypeError, ValueError):
        return 0


def parse_catalog_entry(record: dict[str, Any]) -> AppCatalogEntry | None:
    app_id = record.get("id")
    if app_id is None:
        return None
    type_id = record.get("application_type_id")
    try:
        type_id = int(type_id) if type_id is not None else None
    except (TypeError, ValueError):
        type_id = None
    return AppCatalogEntry(
        id=str(app_id),
        application_type_id=type_id,
        name=str(record.get("name", "")),
    )


def parse_access_event(record: dict[str, Any]) -> AccessEvent | None:
    """Normalize one raw log record. None if it lacks a timestamp or app name."""
    ts = _parse_timestamp(_first(record, _TIMESTAMP_KEYS))
    app_name = _first(record, _APP_NAME_KEYS)
    if ts is None or not app_name:
        return None
    app_id = _first(record, _APP_ID_KEYS)
    email = _first(record, _EMAIL_KEYS)
    return AccessEvent(
        timestamp=ts,
        gateway_app_id=str(app_id) if app_id is not None else "",
        gateway_app_name=str(app_name),
        user_email=str(email) if email else "",
        bytes_sent=_to_int(_first(record, _BYTES_KEYS)),
    )


def _ids(raw: Any) -> frozenset[str]:
    if not isinstance(raw, list):
        return frozenset()
    ids = set()
    for item in raw:
        if isinstance(item, dict):
            item = item.get("id")
        if item is not None:
            ids.add(str(item))
    return frozenset(ids)


class ZeroTrustEventSource:
    """EventSource implementation over the platform's REST API."""

    def __init__(
        self,
        settings: Settings,
        config: PlatformConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._config = config or PlatformConfig()
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        # Global API keys authenticate with email + key; scoped tokens use Bearer.
        if self._settings.email:
            return {
                "X-Auth-Email": self._settings.email,
                "X-Auth-Key": self._settings.api_key,
            }
        return {"Authorization": f"Bearer {self._settings.api_key}"}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=f"{self._config.base_url}/accounts/{self._settings.account_id}",
            headers=self._headers(),
            timeout=self._config.timeout,
            transport=self._transport,
        )

    async def _get_json(
        self, client: httpx.AsyncClient, path: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any] | None:
        try:
            response = await client.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning(
                "platform_fetch_failed",
                path=path,
                error=type(exc).__name__,
                error_kind=ErrorKind.UPSTREAM_FETCH_FAILURE.value,
            )
            return None
        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            logger.warning(
                "platform_response_malformed",
                path=path,
                error_kind=ErrorKind.MALFORMED_RESPONSE.value,
            )
            return None
        return body

    async def _get_result_pages(
        self, path: str, params: dict[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        records: list[dict[str, Any]] = []
        async with self._client() as client:
            page = 1
            while page <= _MAX_PAGES:
                body = await self._get_json(
                    client, path, {**(params or {}), "page": page, "per_page": _PER_PAGE}
                )
                if body is None:
                    break
                result = body.get("result")
                if not isinstance(result, list):
                    logger.warning(
                        "platform_result_not_a_list",
                        path=path,
                        error_kind=ErrorKind.MALFORMED_RESPONSE.value,
                    )
                    break
                records.extend(r for r in result if isinstance(r, dict))
                info = body.get("result_info") or {}
                total_pages = _to_int(info.get("total_pages")) if isinstance(info, dict) else 0
                if page >= total_pages:
                    break
                page += 1
        return records

    async def fetch_app_catalog(self) -> list[AppCatalogEntry]:
        records = await self._get_result_pages("/gateway/apps")
        entries = [e for e in (parse_catalog_entry(r) for r in records) if e is not None]
        logger.info("app_catalog_fetched", entries=len(entries))
        return entries

    async def fetch_review_status(self) -> ReviewStatusSet:
        async with self._client() as client:
            body = await self._get_json(client, "/gateway/apps/review_status")
        result = body.get("result") if body else None
        if not isinstance(result, dict):
            if body is not None:
                logger.warning(
                    "review_status_malformed",
                    error_kind=ErrorKind.MALFORMED_RESPONSE.value,
                )
            return ReviewStatusSet()
        status = ReviewStatusSet(
            approved=_ids(result.get("approved_apps")),
            in_review=_ids(result.get("in_review_apps")),
            unapproved=_ids(result.get("unapproved_apps")),
        )
        logger.info("review_status_fetched", managed=len(status.managed_ids))
        return status

    async def fetch_access_events(self, lookback_days: int) -> list[AccessEvent]:
        since = datetime.now(UTC) - timedelta(days=lookback_days)
        records = await self._get_result_pages(
            "/access/logs/access_requests",
            {"since": since.strftime("%Y-%m-%dT%H:%M:%SZ"), "direction": "desc"},
        )
        events = [e for e in (parse_access_event(r) for r in records) if e is not None]
        skipped = len(records) - len(events)
        logger.info("access_events_fetched", events=len(events), skipped=skipped)
        return events
