"""YAML configuration loader.

Schema (every key optional):
  platform:
    base_url: string
    timeout: seconds
    ai_app_type_id: int
  llm:
    base_url: string
    model: string
    timeout: seconds
    api_key_env: name of the env var holding the API key
  assessment:
    lookback_days: int
    ai_app_patterns: [regex, ...]   (matched case-insensitively)
    synthetic_trend_fallback: true | false
  storage:
    db_path: path
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG_PATH = Path.home() / ".riskguard" / "config.yml"
CONFIG_ENV_VAR = "RISKGUARD_CONFIG"

DEFAULT_AI_APP_PATTERNS: tuple[str, ...] = (
    r"openai",
    r"chatgpt",
    r"claude",
    r"anthropic",
    r"gemini",
    r"\bbard\b",
    r"copilot",
    r"perplexity",
    r"midjourney",
    r"hugging\s*face",
    r"mistral",
    r"cohere",
    r"deepseek",
    r"jasper",
    r"character\.ai",
    r"\bpoe\b",
    r"grok",
    r"\bai\b",
)


@dataclass(frozen=True)
class PlatformConfig:
    base_url: str = "https://api.cloudflare.com/client/v4"
    timeout: float = 15.0
    ai_app_type_id: int = 25
    """The platform's "Artificial Intelligence" application-type id."""


@dataclass(frozen=True)
class LLMConfig:
    base_url: str | None = None
    model: str = "gpt-4o-mini"
    timeout: float = 60.0
    api_key_env: str = "OPENAI_API_KEY"

    @property
    def api_key(self) -> str | None:
        return os.environ.get(self.api_key_env) or None


@dataclass(frozen=True)
class AssessmentConfig:
    lookback_days: int = 30
    ai_app_patterns: tuple[str, ...] = DEFAULT_AI_APP_PATTERNS
    synthetic_trend_fallback: bool = True

    def compiled_patterns(self) -> list[re.Pattern[str]]:
        return [re.compile(p, re.IGNORECASE) for p in self.ai_app_patterns]


@dataclass(frozen=True)
class AppConfig:
    platform: PlatformConfig = field(default_factory=PlatformConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    assessment: AssessmentConfig = field(default_factory=AssessmentConfig)
    db_path: Path = Path.home() / ".riskguard" / "riskguard.db"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from YAML, falling back to defaults.

    Lookup order: explicit ``path``, then $RISKGUARD_CONFIG, then
    ~/.riskguard/config.yml. A missing default file yields defaults; a
    missing explicit file is an error.

    Raises:
        FileNotFoundError: if an explicitly requested file doesn't exist.
        ValueError: if the YAML is structurally invalid.
    """
    explicit = path is not None or bool(os.environ.get(CONFIG_ENV_VAR))
    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH

    if not path.exists():
        if explicit:
            raise FileNotFoundError(f"Config file not found: {path}")
        return AppConfig()

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Config root must be a mapping (source: {path})")

    return _parse_config(data)


def _parse_config(data: dict[str, Any]) -> AppConfig:
    platform = _section(data, "platform")
    llm = _section(data, "llm")
    assessment = _section(data, "assessment")
    storage = _section(data, "storage")

    defaults = AppConfig()

    platform_cfg = PlatformConfig(
        base_url=str(platform.get("base_url", defaults.platform.base_url)).rstrip("/"),
        timeout=_positive(platform, "timeout", defaults.platform.timeout, "platform"),
        ai_app_type_id=int(platform.get("ai_app_type_id", defaults.platform.ai_app_type_id)),
    )
    llm_cfg = LLMConfig(
        base_url=llm.get("base_url", defaults.llm.base_url),
        model=str(llm.get("model", defaults.llm.model)),
        timeout=_positive(llm, "timeout", defaults.llm.timeout, "llm"),
        api_key_env=str(llm.get("api_key_env", defaults.llm.api_key_env)),
    )
    assessment_cfg = AssessmentConfig(
        lookback_days=int(
            _positive(assessment, "lookback_days", defaults.assessment.lookback_days, "assessment")
        ),
        ai_app_patterns=_patterns(assessment, defaults.assessment.ai_app_patterns),
        synthetic_trend_fallback=bool(
            assessment.get(
                "synthetic_trend_fallback", defaults.assessment.synthetic_trend_fallback
            )
        ),
    )
    db_path = Path(storage["db_path"]).expanduser() if "db_path" in storage else defaults.db_path

    return AppConfig(
        platform=platform_cfg,
        llm=llm_cfg,
        assessment=assessment_cfg,
        db_path=db_path,
    )


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Config section '{name}' must be a mapping")
    return section


def _positive(section: dict[str, Any], key: str, default: float, prefix: str) -> float:
    value = section.get(key, default)
    try:
        number = float(value)
    except (TypeError, ValueError) as err:
        raise ValueError(f"Config key '{prefix}.{key}' must be a number") from err
    if number <= 0:
        raise ValueError(f"Config key '{prefix}.{key}' must be positive")
    return number


def _patterns(section: dict[str, Any], default: tuple[str, ...]) -> tuple[str, ...]:
    if "ai_app_patterns" not in section:
        return default
    raw = section["ai_app_patterns"]
    if not isinstance(raw, list) or not raw:
        raise ValueError("Config key 'assessment.ai_app_patterns' must be a non-empty list")
    for pattern in raw:
        try:
            re.compile(str(pattern))
        except re.error as err:
            raise ValueError(f"Invalid regex '{pattern}' in 'assessment.ai_app_patterns'") from err
    return tuple(str(p) for p in raw)
