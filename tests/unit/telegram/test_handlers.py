"""
Unit tests for Telegram command handlers.

Handlers are called directly with mocked messages and FSM context; the
backend service is replaced with a mock.
"""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from aiogram.filters import CommandObject

from adminui.backend.core.exceptions import ValidationError
from adminui.backend.schemas.server import CommandOutcome, ServerStatus
from adminui.telegram.callbacks.common import ConfirmCallback
from adminui.telegram.handlers import common, server
from adminui.telegram.states.confirmation import ActionConfirmation


def _command(name: str, args: str | None = None) -> CommandObject:
    return CommandObject(prefix="/", command=name, args=args)


@pytest.fixture
def service():
    svc = MagicMock()
    svc.status = AsyncMock(
        return_value=ServerStatus(online=True, host="203.0.113.10", uptime="3h 5m")
    )
    svc.kill_process = AsyncMock(return_value=CommandOutcome(ok=True, exit_status=0))
    svc.manage_service = AsyncMock(return_value=CommandOutcome(ok=True, exit_status=0))
    svc.firewall = AsyncMock(return_value=CommandOutcome(ok=True, exit_status=0, output="Rule added"))
    return svc


@pytest.fixture
def patched_service(service):
    calls = []

    @asynccontextmanager
    async def fake_server_service(user):
        calls.append(user)
        yield service

    with patch("adminui.telegram.handlers.server.server_service", fake_server_service):
        yield calls


class TestCommonHandlers:
    @pytest.mark.asyncio
    async def test_help_lists_commands(self, mock_message):
        await common.cmd_help(mock_message)

        text = mock_message.answer.await_args.args[0]
        assert "/restart SERVICE" in text
        assert "/auth_code" in text

    @pytest.mark.asyncio
    async def test_link_shows_audit_name(self, mock_message, telegram_user):
        await common.cmd_link(mock_message, telegram_user)

        assert "telegram:123456789" in mock_message.answer.await_args.args[0]

    @pytest.mark.asyncio
    async def test_cancel_without_state(self, mock_message, mock_state):
        await common.cmd_cancel(mock_message, mock_state)

        mock_message.answer.assert_awaited_once_with("Nothing to cancel.")
        mock_state.clear.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cancel_clears_pending_action(self, mock_message, mock_state):
        mock_state.get_state.return_value = ActionConfirmation.confirming.state

        await common.cmd_cancel(mock_message, mock_state)

        mock_state.clear.assert_awaited_once()


class TestReadOnlyCommands:
    @pytest.mark.asyncio
    async def test_status(self, mock_message, telegram_user, patched_service):
        await server.cmd_status(mock_message, telegram_user)

        assert patched_service == [telegram_user]
        assert "Uptime: 3h 5m" in mock_message.answer.await_args.args[0]

    @pytest.mark.asyncio
    async def test_processes_rejects_non_number(self, mock_message, telegram_user, patched_service, service):
        service.processes = AsyncMock()

        await server.cmd_processes(mock_message, _command("processes", "lots"), telegram_user)

        mock_message.answer.assert_awaited_once_with("Usage: /processes [N]")
        service.processes.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_processes_count_is_clamped(self, mock_message, telegram_user, patched_service, service):
        service.processes = AsyncMock(return_value=[])

        await server.cmd_processes(mock_message, _command("processes", "500"), telegram_user)

        service.processes.assert_awaited_once_with(server.MAX_PROCESS_COUNT)


class TestStateChangingCommands:
    @pytest.mark.asyncio
    async def test_missing_arguments_show_usage(self, mock_message, mock_state):
        await server.cmd_state_changing(mock_message, _command("restart"), mock_state)

        mock_message.answer.assert_awaited_once_with("Usage: /restart SERVICE")
        mock_state.set_state.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_input_is_rejected_before_confirmation(self, mock_message, mock_state):
        with pytest.raises(ValidationError):
            await server.cmd_state_changing(mock_message, _command("open_port", "99999"), mock_state)

        mock_state.set_state.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_service_outside_allow_list(self, mock_message, mock_state):
        with pytest.raises(ValidationError):
            await server.cmd_state_changing(mock_message, _command("restart", "postgresql"), mock_state)

    @pytest.mark.asyncio
    async def test_valid_command_asks_for_confirmation(self, mock_message, mock_state):
        await server.cmd_state_changing(mock_message, _command("kill", "4242 KILL"), mock_state)

        mock_state.set_state.assert_awaited_once_with(ActionConfirmation.confirming)
        mock_state.update_data.assert_awaited_once_with(operation="kill", args=["4242", "KILL"])
        call = mock_message.answer.await_args
        assert "/kill 4242 KILL" in call.args[0]
        assert call.kwargs["reply_markup"] is not None


class TestConfirmation:
    @pytest.mark.asyncio
    async def test_confirm_runs_the_pending_action(
        self, mock_callback, mock_state, telegram_user, patched_service, service
    ):
        mock_state.get_data.return_value = {"operation": "restart", "args": ["nginx"]}

        await server.on_confirm(mock_callback, ConfirmCallback(operation="restart"), mock_state, telegram_user)

        mock_state.clear.assert_awaited_once()
        service.manage_service.assert_awaited_once_with("systemd", "nginx", "restart")
        final_text = mock_callback.message.edit_text.await_args.args[0]
        assert final_text.startswith("✅ <b>/restart nginx</b>")

    @pytest.mark.asyncio
    async def test_close_port_denies(self, mock_callback, mock_state, telegram_user, patched_service, service):
        mock_state.get_data.return_value = {"operation": "close_port", "args": ["8080", "tcp"]}

        await server.on_confirm(mock_callback, ConfirmCallback(operation="close_port"), mock_state, telegram_user)

        service.firewall.assert_awaited_once_with("8080", "deny", "tcp")

    @pytest.mark.asyncio
    async def test_cancel_runs_nothing(self, mock_callback, mock_state, telegram_user, patched_service, service):
        mock_state.get_data.return_value = {"operation": "kill", "args": ["4242"]}

        await server.on_confirm(
            mock_callback, ConfirmCallback(operation="kill", confirmed=False), mock_state, telegram_user
        )

        service.kill_process.assert_not_awaited()
        mock_callback.message.edit_text.assert_awaited_once_with("❌ Cancelled.")

    @pytest.mark.asyncio
    async def test_button_from_another_prompt(
        self, mock_callback, mock_state, telegram_user, patched_service, service
    ):
        mock_state.get_data.return_value = {"operation": "kill", "args": ["4242"]}

        await server.on_confirm(mock_callback, ConfirmCallback(operation="restart"), mock_state, telegram_user)

        service.kill_process.assert_not_awaited()
        service.manage_service.assert_not_awaited()
        assert mock_callback.answer.await_args.kwargs == {"show_alert": True}
