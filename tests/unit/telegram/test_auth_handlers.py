"""
Unit tests for the login code and error handlers.

Codes are stored in the in-memory test database.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from aiogram.filters import CommandObject

from adminui.backend.core.exceptions import CommandNotAllowedError
from adminui.backend.services.auth import CODE_ALPHABET
from adminui.telegram.handlers import auth, errors


def _code_from(text: str) -> str:
    return text.split("<code>", 1)[1].split("</code>", 1)[0]


class TestAuthCode:
    @pytest.mark.asyncio
    async def test_issues_code_for_sender(self, mock_message, telegram_user, use_test_database):
        await auth.cmd_auth_code(
            mock_message, CommandObject(prefix="/", command="auth_code"), telegram_user
        )

        text = mock_message.answer.await_args.args[0]
        code = _code_from(text)
        assert len(code) == 6
        assert set(code) <= set(CODE_ALPHABET)
        assert "User: <code>ada</code>" in text
        assert "Valid for 10 min" in text

    @pytest.mark.asyncio
    async def test_check_does_not_consume(self, mock_message, telegram_user, use_test_database):
        await auth.cmd_auth_code(
            mock_message, CommandObject(prefix="/", command="auth_code"), telegram_user
        )
        code = _code_from(mock_message.answer.await_args.args[0])

        for _ in range(2):
            await auth.cmd_auth_code(
                mock_message,
                CommandObject(prefix="/", command="auth_code", args=code.lower()),
                telegram_user,
            )
            assert mock_message.answer.await_args.args[0].startswith("✅ Code")

    @pytest.mark.asyncio
    async def test_check_unknown_code(self, mock_message, telegram_user, use_test_database):
        await auth.cmd_auth_code(
            mock_message, CommandObject(prefix="/", command="auth_code", args="ZZZZZZ"), telegram_user
        )

        mock_message.answer.assert_awaited_once_with("❌ Code is invalid, already used or expired.")

    @pytest.mark.asyncio
    async def test_menu_button(self, mock_callback, telegram_user, use_test_database):
        await auth.on_login_code(mock_callback, telegram_user)

        assert "Login code" in mock_callback.message.edit_text.await_args.args[0]
        mock_callback.answer.assert_awaited_once_with("✅ Code created")


class TestApplicationErrors:
    @pytest.mark.asyncio
    async def test_reported_to_message_sender(self, mock_message):
        event = MagicMock()
        event.exception = CommandNotAllowedError("<reboot>")
        event.update.message = mock_message

        await errors.on_application_error(event)

        mock_message.answer.assert_awaited_once_with("❌ Command not allowed: &lt;reboot&gt;")

    @pytest.mark.asyncio
    async def test_reported_under_callback_message(self, mock_callback):
        event = MagicMock()
        event.exception = CommandNotAllowedError("reboot")
        event.update.message = None
        event.update.callback_query = mock_callback

        await errors.on_application_error(event)

        mock_callback.message.answer.assert_awaited_once_with("❌ Command not allowed: reboot")
