"""
RuleGate Configuration

Settings are read from the environment:

    RG_LOG_LEVEL              Log level for the "rulegate" logger (INFO)
    RG_LOG_FORMAT             "json" or "text" (json)
    RG_TIMEZONE               IANA timezone for built-in date/time conditions (UTC)
    RG_DEFAULT_STATUS         Ruleset status fetched by default (active)
    RG_STRICT_SCHEMA_VERSION  Reject rule packs with a different major version (true)
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

LOG_FORMATS = ("json", "text")


@dataclass(frozen=True)
class Settings:
    """Snapshot of the environment configuration."""
    log_level: str = "INFO"
    log_format: str = "json"
    timezone: str = "UTC"
    default_status: str = "active"
    strict_schema_version: bool = True

    @property
    def tz(self) -> tzinfo:
        """
        The configured timezone.

        Raises:
            ValueError: If RG_TIMEZONE is not a known IANA timezone
        """
        if self.timezone.upper() == "UTC":
            return timezone.utc
        try:
            return ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone in RG_TIMEZONE: '{self.timezone}'") from None


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def get_settings() -> Settings:
    """
    Read settings from the environment.

    Read on every call so tests and CLI invocations can change the
    environment without reloading modules.
    """
    log_format = os.getenv("RG_LOG_FORMAT", "json").strip().lower()
    if log_format not in LOG_FORMATS:
        log_format = "json"

    return Settings(
        log_level=os.getenv("RG_LOG_LEVEL", "INFO").strip().upper(),
        log_format=log_format,
        timezone=os.getenv("RG_TIMEZONE", "UTC").strip() or "UTC",
        default_status=os.getenv("RG_DEFAULT_STATUS", "active").strip() or "active",
        strict_schema_version=_env_bool("RG_STRICT_SCHEMA_VERSION", "true"),
    )
