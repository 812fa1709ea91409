"""Shared CLI plumbing: configuration and store lookup from the click context."""

from __future__ import annotations

import click

from riskguard.config import AppConfig
from riskguard.domain.interfaces import AssessmentStore, SettingsRepository
from riskguard.storage.sqlite_repo import SQLiteStore
from riskguard.tools.dispatcher import ToolProviderRegistry

SETTINGS_REGION = "default"

TOOL_REGISTRY = ToolProviderRegistry()
"""Extra tools offered to the narrative model by `assess`.

Code that embeds the CLI registers its tools here before invoking it.
"""


def get_config(ctx: click.Context) -> AppConfig:
    obj = ctx.find_object(dict) or {}
    return obj.get("config") or AppConfig()


def settings_store(config: AppConfig) -> SettingsRepository:
    """Store region holding the local settings record."""
    return SQLiteStore(db_path=config.db_path, account=SETTINGS_REGION)


def account_store(config: AppConfig) -> AssessmentStore:
    """Store region for the configured account's reports and audit log."""
    settings = settings_store(config).get_settings()
    return SQLiteStore(db_path=config.db_path, account=settings.account_id or SETTINGS_REGION)
