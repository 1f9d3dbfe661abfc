"""
Unit Test Fixtures.

Fixtures for unit tests - remote hosts, Telegram and the network are mocked.
Tests that need persistence use the in-memory database from the root conftest.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from aiogram.types import CallbackQuery, Message, User


# =============================================================================
# Remote Host Fixtures
# =============================================================================


@pytest.fixture
def remote_config() -> SimpleNamespace:
    """
    remote.yaml equivalent with password-free defaults.

    Usage:
        def test_executor(remote_config, ssh_settings):
            executor = RemoteExecutor(remote_config, ssh_settings)
    """
    return SimpleNamespace(
        host="203.0.113.10",
        port=22,
        username="root",
        key_path=None,
        known_hosts=None,
        connect_timeout_seconds=5,
        keepalive_interval_seconds=10,
        command_timeout_seconds=30,
        terminal_timeout_seconds=10,
        use_sudo=False,
        max_output_chars=200,
    )


@pytest.fixture
def ssh_settings() -> SimpleNamespace:
    """Secrets with only an SSH password configured."""
    return SimpleNamespace(
        ssh_password="hunter2",
        ssh_private_key="",
        ssh_key_passphrase="",
        ssh_public_key="",
    )


# =============================================================================
# Telegram Fixtures
# =============================================================================


@pytest.fixture
def telegram_user() -> User:
    """An admin Telegram user."""
    return User(id=123456789, is_bot=False, first_name="Ada", username="ada")


@pytest.fixture
def mock_message(telegram_user: User) -> MagicMock:
    """
    Mock Message that passes isinstance checks.

    Usage:
        await cmd_help(mock_message)
        mock_message.answer.assert_awaited_once()
    """
    message = MagicMock(spec=Message)
    message.from_user = telegram_user
    message.answer = AsyncMock()
    message.edit_text = AsyncMock()
    return message


@pytest.fixture
def mock_callback(telegram_user: User, mock_message: MagicMock) -> MagicMock:
    """Mock CallbackQuery attached to mock_message."""
    callback = MagicMock(spec=CallbackQuery)
    callback.from_user = telegram_user
    callback.message = mock_message
    callback.answer = AsyncMock()
    return callback


@pytest.fixture
def mock_state() -> AsyncMock:
    """Mock FSMContext with empty data."""
    state = AsyncMock()
    state.get_data = AsyncMock(return_value={})
    state.get_state = AsyncMock(return_value=None)
    return state


# =============================================================================
# Logging Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_logger() -> MagicMock:
    """
    Mock logger for testing logging calls.

    Usage:
        def test_logging(mock_logger):
            with patch("module.logger", mock_logger):
                # Test code that logs
                mock_logger.warning.assert_called_once()
    """
    logger = MagicMock()
    logger.debug = MagicMock()
    logger.info = MagicMock()
    logger.warning = MagicMock()
    logger.error = MagicMock()
    logger.exception = MagicMock()
    return logger
