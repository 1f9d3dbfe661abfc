"""
Unit Tests for Logging Configuration.
"""

import logging
from logging.handlers import RotatingFileHandler
from unittest.mock import MagicMock, patch

import pytest

from adminui.backend.core.logging import (
    REDACTED,
    VALID_SOURCES,
    _resolve_log_path,
    get_logger,
    log_with_source,
    redact_secrets,
    setup_logging,
)

LOGGING_CONFIG = {
    "level": "INFO",
    "format": "json",
    "handlers": {
        "console": {"enabled": True},
        "file": {
            "enabled": False,
            "path": "logs/system.jsonl",
            "max_bytes": 1024,
            "backup_count": 1,
        },
    },
}


@pytest.fixture
def logging_config():
    with patch("adminui.backend.core.logging._get_logging_config", return_value=LOGGING_CONFIG):
        yield LOGGING_CONFIG


def test_sources_cover_every_channel():
    assert {"web", "telegram", "remote", "cli", "internal"} <= VALID_SOURCES


class TestSetupLogging:
    def test_level_override(self, logging_config):
        setup_logging(level="DEBUG")

        assert logging.getLogger().level == logging.DEBUG

    def test_config_defaults(self, logging_config):
        setup_logging()

        root = logging.getLogger()
        assert root.level == logging.INFO
        assert [type(h) for h in root.handlers] == [logging.StreamHandler]

    def test_file_handler(self, logging_config, tmp_path):
        with patch("adminui.backend.core.logging._resolve_log_path", return_value=tmp_path / "logs" / "system.jsonl"):
            setup_logging(enable_console=False, enable_file_logging=True)

        [handler] = logging.getLogger().handlers
        assert isinstance(handler, RotatingFileHandler)
        assert (tmp_path / "logs").is_dir()
        handler.close()
        logging.getLogger().removeHandler(handler)

    def test_noisy_libraries_are_quietened(self, logging_config):
        setup_logging(level="DEBUG")

        assert logging.getLogger("asyncssh").level == logging.WARNING
        assert logging.getLogger("aiogram.event").level == logging.WARNING


def test_resolve_log_path_is_under_project_root():
    path = _resolve_log_path("logs/system.jsonl")

    assert path.is_absolute()
    assert (path.parent.parent / ".project_root").exists()


class TestLogWithSource:
    def test_adds_source(self):
        logger = MagicMock()

        log_with_source(logger, "remote", "warning", "Command timed out", host="203.0.113.10")

        logger.warning.assert_called_once_with("Command timed out", source="remote", host="203.0.113.10")

    def test_invalid_level(self):
        with pytest.raises(AttributeError):
            log_with_source(object(), "web", "loud", "nope")


def test_get_logger_has_standard_methods():
    logger = get_logger("adminui.test")

    for method in ("debug", "info", "warning", "error", "exception"):
        assert callable(getattr(logger, method))


class TestRedactSecrets:
    def test_masks_top_level_secrets(self):
        event = {"event": "SSH login", "username": "root", "ssh_password": "hunter2", "code": "K7PX2M"}

        result = redact_secrets(None, "info", event)

        assert result["ssh_password"] == REDACTED
        assert result["code"] == REDACTED
        assert result["username"] == "root"

    def test_masks_inside_extra(self):
        event = {"event": "Login", "extra": {"signature": "U1NIU0lH", "method": "ssh"}}

        result = redact_secrets(None, "info", event)

        assert result["extra"] == {"signature": REDACTED, "method": "ssh"}

    def test_empty_values_are_left_alone(self):
        event = {"event": "No key configured", "private_key": ""}

        assert redact_secrets(None, "warning", event)["private_key"] == ""
