"""
Tests for environment settings and logging setup
"""
import json
import logging
import sys
from datetime import timezone

import pytest

from rulegate.config import Settings, get_settings
from rulegate.logging_config import ROOT_LOGGER, JSONFormatter, configure_logging


class TestSettings:
    """Tests for RG_* environment settings."""

    def test_defaults(self):
        """Test defaults with a clean environment."""
        assert get_settings() == Settings()

    def test_environment_overrides(self, monkeypatch):
        """Test each variable is read."""
        monkeypatch.setenv("RG_LOG_LEVEL", "debug")
        monkeypatch.setenv("RG_LOG_FORMAT", "TEXT")
        monkeypatch.setenv("RG_TIMEZONE", "America/Toronto")
        monkeypatch.setenv("RG_DEFAULT_STATUS", "publish")
        monkeypatch.setenv("RG_STRICT_SCHEMA_VERSION", "no")

        settings = get_settings()
        assert settings.log_level == "DEBUG"
        assert settings.log_format == "text"
        assert settings.timezone == "America/Toronto"
        assert settings.default_status == "publish"
        assert settings.strict_schema_version is False

    def test_invalid_log_format_falls_back(self, monkeypatch):
        """Test an unknown log format falls back to json."""
        monkeypatch.setenv("RG_LOG_FORMAT", "xml")
        assert get_settings().log_format == "json"

    def test_utc_timezone(self):
        """Test UTC resolves without tz data."""
        assert Settings(timezone="utc").tz is timezone.utc

    def test_unknown_timezone(self):
        """Test an unknown timezone raises ValueError."""
        with pytest.raises(ValueError):
            Settings(timezone="Mars/Olympus_Mons").tz


class TestLogging:
    """Tests for configure_logging and the JSON formatter."""

    @pytest.fixture(autouse=True)
    def _restore(self, restore_rulegate_logger):
        assert restore_rulegate_logger.name == ROOT_LOGGER

    def test_json_formatter_extras(self):
        """Test structured extras are copied into the JSON entry."""
        record = logging.LogRecord(
            "rulegate.engine", logging.WARNING, __file__, 1, "resolver failed", None, None,
        )
        record.set_id = "shop"
        record.condition = "order_total"
        entry = json.loads(JSONFormatter().format(record))
        assert entry["level"] == "WARNING"
        assert entry["message"] == "resolver failed"
        assert entry["set_id"] == "shop"
        assert entry["condition"] == "order_total"
        assert "ruleset_id" not in entry

    def test_json_formatter_exception(self):
        """Test exception text is included."""
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord(
                "rulegate", logging.ERROR, __file__, 1, "failed", None, sys.exc_info(),
            )
        entry = json.loads(JSONFormatter().format(record))
        assert "RuntimeError: boom" in entry["exception"]

    def test_configure_replaces_handler(self):
        """Test repeated configuration keeps a single handler."""
        configure_logging("debug", "json")
        logger = configure_logging("warning", "text")
        own = [h for h in logger.handlers if getattr(h, "_rulegate_handler", False)]
        assert len(own) == 1
        assert not isinstance(own[0].formatter, JSONFormatter)
        assert logger.level == logging.WARNING

    def test_configure_from_environment(self, monkeypatch):
        """Test defaults come from RG_LOG_LEVEL and RG_LOG_FORMAT."""
        monkeypatch.setenv("RG_LOG_LEVEL", "ERROR")
        logger = configure_logging()
        own = [h for h in logger.handlers if getattr(h, "_rulegate_handler", False)]
        assert isinstance(own[0].formatter, JSONFormatter)
        assert logger.level == logging.ERROR
