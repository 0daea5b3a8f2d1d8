"""
Settings and Logging Configuration Tests
"""

import json
import logging

import pytest
from pydantic import ValidationError

from config.logging_config import (
    ContextLogger,
    JsonFormatter,
    ReadableFormatter,
    configure_logging,
    get_logger,
    user_id_var,
)
from config.settings import AccessControlSettings, get_settings


# =============================================================================
# SETTINGS
# =============================================================================

class TestSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("RBAC_PROVINCES", raising=False)
        settings = AccessControlSettings(_env_file=None)
        assert settings.default_role == "guest"
        assert settings.log_level == "INFO"
        assert settings.json_logs is False
        assert settings.provinces == {}

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("RBAC_DEFAULT_ROLE", "pending")
        monkeypatch.setenv("RBAC_LOG_LEVEL", "debug")
        settings = AccessControlSettings(_env_file=None)
        assert settings.default_role == "pending"
        assert settings.log_level == "DEBUG"

    def test_provinces_from_json(self, monkeypatch):
        monkeypatch.setenv("RBAC_PROVINCES", '{"P1": ["B1", "B2"], "P2": ["B3"]}')
        settings = AccessControlSettings(_env_file=None)
        directory = settings.geography()
        assert directory.provinces == {"P1", "P2"}
        assert directory.province_of("B3") == "P2"

    def test_unknown_default_role_rejected(self):
        with pytest.raises(ValidationError):
            AccessControlSettings(_env_file=None, default_role="overlord")

    @pytest.mark.parametrize("role", ["super_admin", "developer", "province_admin", "user"])
    def test_privileged_default_role_rejected(self, role):
        with pytest.raises(ValidationError):
            AccessControlSettings(_env_file=None, default_role=role)

    def test_privileged_default_role_rejected_from_env(self, monkeypatch):
        monkeypatch.setenv("RBAC_DEFAULT_ROLE", "super_admin")
        with pytest.raises(ValidationError):
            AccessControlSettings(_env_file=None)

    def test_duplicate_branch_rejected(self):
        with pytest.raises(ValidationError):
            AccessControlSettings(_env_file=None, provinces={"P1": ["B1"], "P2": ["B1"]})

    def test_unknown_log_level_rejected(self):
        with pytest.raises(ValidationError):
            AccessControlSettings(_env_file=None, log_level="LOUD")

    def test_is_production(self):
        assert AccessControlSettings(_env_file=None, environment="production").is_production
        assert not AccessControlSettings(_env_file=None, environment="test").is_production

    def test_get_settings_cached(self):
        assert get_settings() is get_settings()


# =============================================================================
# LOGGING
# =============================================================================

def _record(message="hello", **extra_data):
    record = logging.LogRecord("rbac.test", logging.INFO, __file__, 1, message, None, None)
    if extra_data:
        record.extra_data = extra_data
    return record


class TestLogging:

    def test_json_formatter(self):
        line = JsonFormatter().format(_record(path="/P1/dashboard"))
        data = json.loads(line)
        assert data["message"] == "hello"
        assert data["level"] == "INFO"
        assert data["path"] == "/P1/dashboard"

    def test_json_formatter_includes_user(self):
        token = user_id_var.set("u-42")
        try:
            data = json.loads(JsonFormatter().format(_record()))
        finally:
            user_id_var.reset(token)
        assert data["user_id"] == "u-42"

    def test_readable_formatter(self):
        line = ReadableFormatter(use_colors=False).format(_record(role="lead"))
        assert "[rbac.test] hello" in line
        assert "role=lead" in line

    def test_get_logger_adds_context(self):
        logger = get_logger("rbac.test", component="session")
        assert isinstance(logger, ContextLogger)
        _, kwargs = logger.process("msg", {})
        assert kwargs["extra"]["extra_data"] == {"component": "session"}

    def test_configure_logging(self, tmp_path):
        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level
        try:
            configure_logging("WARNING", json_output=True, log_file=tmp_path / "logs" / "rbac.log")
            assert root.level == logging.WARNING
            assert len(root.handlers) == 2
            assert all(isinstance(h.formatter, JsonFormatter) for h in root.handlers)
            assert (tmp_path / "logs").is_dir()
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
