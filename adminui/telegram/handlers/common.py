"""
Common Command Handlers.

/start, /help, /link, /admin and /cancel.
"""

from aiogram import Router
from aiogram.filters import Command, CommandStart
from aiogram.fsm.context import FSMContext
from aiogram.types import Message, User

from adminui.backend.core.config import get_app_config
from adminui.backend.core.logging import get_logger
from adminui.telegram.keyboards.common import get_admin_menu_keyboard

logger = get_logger(__name__)

router = Router(name="common")

HELP_TEXT = """<b>Available commands</b>

<b>Access</b>
/admin - Dashboard link and quick actions
/auth_code - Get a one-time login code
/auth_code CODE - Check whether a code is still valid
/link - Show your Telegram id

<b>Host</b>
/status - Uptime, load, memory and disk
/disk - Root filesystem usage
/services - systemd units and PM2 processes
/processes [N] - Top processes by CPU
/ports - Listening ports
/firewall - Firewall status
/logs - Recent panel activity

<b>Actions</b> (asks for confirmation)
/kill PID [SIGNAL]
/restart SERVICE
/open_port PORT [tcp|udp]
/close_port PORT [tcp|udp]

/cancel - Cancel the current operation
/help - Show this message"""


@router.message(CommandStart())
async def cmd_start(message: Message, telegram_user: User) -> None:
    app_name = get_app_config().application.name
    await message.answer(
        f"👋 Hello, <b>{telegram_user.first_name}</b>!\n\n"
        f"This is the {app_name} bot. Use /admin for quick actions "
        "or /help for the list of commands."
    )


@router.message(Command("help"))
async def cmd_help(message: Message) -> None:
    await message.answer(HELP_TEXT)


@router.message(Command("link"))
async def cmd_link(message: Message, telegram_user: User) -> None:
    await message.answer(
        "🔗 <b>Your Telegram account</b>\n\n"
        f"ID: <code>{telegram_user.id}</code>\n"
        f"Username: @{telegram_user.username or '-'}\n\n"
        "Actions you take here are logged as "
        f"<code>telegram:{telegram_user.id}</code>."
    )


@router.message(Command("admin"))
async def cmd_admin(message: Message) -> None:
    dashboard_url = get_app_config().application.server.public_url
    await message.answer(
        "🔧 <b>Admin panel</b>\n\nChoose an action:",
        reply_markup=get_admin_menu_keyboard(dashboard_url),
    )


@router.message(Command("cancel"))
async def cmd_cancel(message: Message, state: FSMContext) -> None:
    current_state = await state.get_state()

    if current_state is None:
        await message.answer("Nothing to cancel.")
        return

    await state.clear()
    await message.answer("❌ Operation cancelled.")
    logger.debug("FSM state cancelled", extra={"state": current_state})
