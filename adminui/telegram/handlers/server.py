"""
Host Command Handlers.

Read-only commands answer straight away. State-changing commands
(/kill, /restart, /open_port, /close_port) are validated, parked in the
ActionConfirmation state and run only after the Confirm button.

Everything goes through ServerService, so the bot shares the whitelist,
input validation and audit trail with the HTTP API.
"""

from html import escape

from aiogram import F, Router
from aiogram.filters import Command, CommandObject
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message, User

from adminui.backend.core.config import get_app_config
from adminui.backend.remote import commands
from adminui.backend.remote.commands import RemoteAction
from adminui.backend.schemas.server import CommandOutcome
from adminui.backend.services.server import ServerService
from adminui.telegram import formatting
from adminui.telegram.callbacks.common import ConfirmCallback, MenuCallback
from adminui.telegram.keyboards.common import get_confirmation_keyboard
from adminui.telegram.services.backend import server_service
from adminui.telegram.states.confirmation import ActionConfirmation

router = Router(name="server")

DEFAULT_PROCESS_COUNT = 10
MAX_PROCESS_COUNT = 30
LOG_COUNT = 15

USAGE = {
    "kill": "/kill PID [SIGNAL]",
    "restart": "/restart SERVICE",
    "open_port": "/open_port PORT [tcp|udp]",
    "close_port": "/close_port PORT [tcp|udp]",
}


# =============================================================================
# Read-only commands
# =============================================================================


@router.message(Command("status"))
async def cmd_status(message: Message, telegram_user: User) -> None:
    async with server_service(telegram_user) as service:
        status = await service.status()
    await message.answer(formatting.format_status(status))


@router.callback_query(MenuCallback.filter(F.action == "status"))
async def on_status(callback: CallbackQuery, telegram_user: User) -> None:
    async with server_service(telegram_user) as service:
        status = await service.status()
    if isinstance(callback.message, Message):
        await callback.message.answer(formatting.format_status(status))
    await callback.answer()


@router.message(Command("disk"))
async def cmd_disk(message: Message, telegram_user: User) -> None:
    async with server_service(telegram_user) as service:
        status = await service.status()
    await message.answer(formatting.format_disk(status))


@router.message(Command("services"))
async def cmd_services(message: Message, telegram_user: User) -> None:
    async with server_service(telegram_user) as service:
        result = await service.services()
    await message.answer(formatting.format_services(result.services, result.pm2_available))


@router.message(Command("processes"))
async def cmd_processes(message: Message, command: CommandObject, telegram_user: User) -> None:
    count = DEFAULT_PROCESS_COUNT
    if command.args:
        try:
            count = int(command.args.split()[0])
        except ValueError:
            await message.answer("Usage: /processes [N]")
            return
    count = min(max(count, 1), MAX_PROCESS_COUNT)

    async with server_service(telegram_user) as service:
        processes = await service.processes(count)
    await message.answer(formatting.format_processes(processes))


@router.message(Command("ports"))
async def cmd_ports(message: Message, telegram_user: User) -> None:
    async with server_service(telegram_user) as service:
        ports = await service.ports()
    await message.answer(formatting.format_ports(ports))


@router.message(Command("firewall"))
async def cmd_firewall(message: Message, telegram_user: User) -> None:
    async with server_service(telegram_user) as service:
        outcome = await service.execute(RemoteAction.CHECK_FIREWALL_STATUS.value)
    await message.answer(formatting.format_outcome("Firewall status", outcome))


@router.message(Command("logs"))
async def cmd_logs(message: Message, telegram_user: User) -> None:
    async with server_service(telegram_user) as service:
        entries = await service.logs(LOG_COUNT)
    await message.answer(formatting.format_logs(entries))


# =============================================================================
# State-changing commands
# =============================================================================


def validate_operation(operation: str, args: list[str]) -> None:
    """
    Build the plan once so bad input is rejected before asking for confirmation.

    Raises:
        ValidationError: Arguments are malformed or the service is not allowed
    """
    if operation == "kill":
        commands.kill_plan(args[0], args[1] if len(args) > 1 else None)
    elif operation == "restart":
        commands.manage_service_plan("systemd", args[0], "restart", get_app_config().remote.allowed_services)
    else:
        commands.firewall_plan(args[0], "allow", args[1] if len(args) > 1 else None)


async def perform_operation(service: ServerService, operation: str, args: list[str]) -> CommandOutcome:
    if operation == "kill":
        return await service.kill_process(args[0], args[1] if len(args) > 1 else None)
    if operation == "restart":
        return await service.manage_service("systemd", args[0], "restart")
    rule = "allow" if operation == "open_port" else "deny"
    return await service.firewall(args[0], rule, args[1] if len(args) > 1 else None)


@router.message(Command("kill", "restart", "open_port", "close_port"))
async def cmd_state_changing(message: Message, command: CommandObject, state: FSMContext) -> None:
    operation = command.command
    args = command.args.split() if command.args else []
    if not args or len(args) > 2:
        await message.answer(f"Usage: {USAGE[operation]}")
        return

    validate_operation(operation, args)

    await state.set_state(ActionConfirmation.confirming)
    await state.update_data(operation=operation, args=args)
    await message.answer(
        f"⚠️ Run <code>/{operation} {escape(' '.join(args))}</code>?",
        reply_markup=get_confirmation_keyboard(operation),
    )


@router.callback_query(ConfirmCallback.filter(), ActionConfirmation.confirming)
async def on_confirm(
    callback: CallbackQuery,
    callback_data: ConfirmCallback,
    state: FSMContext,
    telegram_user: User,
) -> None:
    data = await state.get_data()
    await state.clear()

    message = callback.message if isinstance(callback.message, Message) else None

    if data.get("operation") != callback_data.operation:
        await callback.answer("This confirmation has expired.", show_alert=True)
        return

    if not callback_data.confirmed:
        if message:
            await message.edit_text("❌ Cancelled.")
        await callback.answer()
        return

    await callback.answer()
    if message:
        await message.edit_text("⏳ Running...")

    args = data["args"]
    async with server_service(telegram_user) as service:
        outcome = await perform_operation(service, data["operation"], args)

    text = formatting.format_outcome(f"/{data['operation']} {' '.join(args)}", outcome)
    if message:
        await message.edit_text(text)


@router.callback_query(ConfirmCallback.filter())
async def on_stale_confirm(callback: CallbackQuery) -> None:
    await callback.answer("Nothing to confirm.", show_alert=True)
