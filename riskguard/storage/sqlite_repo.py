"""SQLite-backed key-value store for settings, report history, and audit logs.

Schema:
  kv — one row per (account, key); value is a JSON document

Keys used per account:
  user_settings — Settings document
  reports       — list of report documents, newest first, capped at 50
  audit_logs    — list of audit entries, newest first, capped at 100

Each list is rewritten inside a single transaction, so one account's
history behaves as a serialized region.
"""

from __future__ import annotations

import json
import os
import sqlite3
import uuid
from contextlib import suppress
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import structlog

from riskguard.domain.models import AssessmentReport, AuditLog, AuditStatus, Settings

logger = structlog.get_logger()

_DEFAULT_DB = Path.home() / ".riskguard" / "riskguard.db"

MAX_REPORTS = 50
MAX_AUDIT_LOGS = 100

_SETTINGS_KEY = "user_settings"
_REPORTS_KEY = "reports"
_LOGS_KEY = "audit_logs"

_DDL = """
CREATE TABLE IF NOT EXISTS kv (
    account     TEXT NOT NULL,
    key         TEXT NOT NULL,
    value       TEXT NOT NULL,
    updated_at  TEXT NOT NULL,
    PRIMARY KEY (account, key)
);
"""


class SQLiteStore:
    """Per-account JSON key-value region with get/put/list/delete."""

    def __init__(self, db_path: Path | None = None, account: str = "default") -> None:
        self._db_path = db_path or _DEFAULT_DB
        self._account = account
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.executescript(_DDL)
        with suppress(OSError):
            os.chmod(self._db_path, 0o600)

    def get(self, key: str, default: Any = None) -> Any:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT value FROM kv WHERE account = ? AND key = ?", (self._account, key)
            ).fetchone()
        if row is None:
            return default
        return json.loads(row["value"])

    def put(self, key: str, value: Any) -> None:
        with self._connect() as conn:
            self._put(conn, key, value)

    def list_keys(self) -> list[str]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT key FROM kv WHERE account = ? ORDER BY key", (self._account,)
            ).fetchall()
        return [row["key"] for row in rows]

    def delete(self, key: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM kv WHERE account = ? AND key = ?", (self._account, key))

    def _put(self, conn: sqlite3.Connection, key: str, value: Any) -> None:
        conn.execute(
            """
            INSERT INTO kv (account, key, value, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(account, key) DO UPDATE SET
                value      = excluded.value,
                updated_at = excluded.updated_at
            """,
            (self._account, key, json.dumps(value), datetime.now(UTC).isoformat()),
        )

    def _prepend(self, key: str, item: dict[str, Any], cap: int) -> None:
        """Insert ``item`` at the head of a capped list in one transaction."""
        with self._connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute(
                "SELECT value FROM kv WHERE account = ? AND key = ?", (self._account, key)
            ).fetchone()
            items = json.loads(row["value"]) if row else []
            items.insert(0, item)
            self._put(conn, key, items[:cap])

    # ── Settings ───────────────────────────────────────────────────────────────

    def get_settings(self) -> Settings:
        data = self.get(_SETTINGS_KEY)
        if not isinstance(data, dict):
            return Settings()
        return Settings.from_dict(data)

    def update_settings(self, settings: Settings) -> None:
        self.put(_SETTINGS_KEY, settings.to_dict())

    # ── Reports ────────────────────────────────────────────────────────────────

    def add_report(self, report: AssessmentReport) -> None:
        self._prepend(_REPORTS_KEY, report.to_dict(), MAX_REPORTS)

    def list_reports(self) -> list[AssessmentReport]:
        return [AssessmentReport.from_dict(r) for r in self.get(_REPORTS_KEY, [])]

    def get_report_by_id(self, report_id: str) -> AssessmentReport | None:
        for data in self.get(_REPORTS_KEY, []):
            if data.get("id") == report_id:
                return AssessmentReport.from_dict(data)
        return None

    def remove_report(self, report_id: str) -> None:
        with self._connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            row = conn.execute(
                "SELECT value FROM kv WHERE account = ? AND key = ?",
                (self._account, _REPORTS_KEY),
            ).fetchone()
            if row is None:
                return
            reports = [r for r in json.loads(row["value"]) if r.get("id") != report_id]
            self._put(conn, _REPORTS_KEY, reports)

    # ── Audit log ──────────────────────────────────────────────────────────────

    def add_log(
        self,
        action: str,
        user: str,
        status: AuditStatus,
        description: str | None = None,
    ) -> AuditLog:
        entry = AuditLog(
            id=str(uuid.uuid4()),
            timestamp=datetime.now(UTC).isoformat(),
            action=action,
            user=user,
            status=status,
            description=description,
        )
        try:
            self._prepend(_LOGS_KEY, entry.to_dict(), MAX_AUDIT_LOGS)
        except sqlite3.Error as exc:
            logger.error("audit_log_write_failed", action=action, error=str(exc))
        return entry

    def get_logs(self) -> list[AuditLog]:
        return [AuditLog.from_dict(entry) for entry in self.get(_LOGS_KEY, [])]
