"""
Login Code Handlers.

/auth_code issues a one-time code for the web login, the same record the
panel's "request code" button creates. /auth_code CODE tells whether a
code is still usable without consuming it.
"""

from html import escape

from aiogram import F, Router
from aiogram.filters import Command, CommandObject
from aiogram.types import CallbackQuery, Message, User

from adminui.backend.core.config import get_app_config
from adminui.backend.core.logging import get_logger, log_with_source
from adminui.backend.services.auth import AuthService
from adminui.telegram.callbacks.common import MenuCallback
from adminui.telegram.services.backend import db_session

logger = get_logger(__name__)

router = Router(name="auth")


async def issue_code(user: User) -> str:
    """Create a code for the sender and return the message announcing it."""
    async with db_session() as session:
        record = await AuthService(session).create_telegram_code(user.username)

    log_with_source(
        logger,
        "telegram",
        "info",
        "Login code issued from bot",
        user_id=user.id,
        username=record.username,
    )
    minutes = max(1, get_app_config().security.telegram_codes.ttl_seconds // 60)
    return (
        "🔐 <b>Login code</b>\n\n"
        f"<code>{record.code}</code>\n\n"
        f"User: <code>{escape(record.username)}</code>\n"
        f"⏱️ Valid for {minutes} min. Enter it on the login page."
    )


@router.message(Command("auth_code"))
async def cmd_auth_code(message: Message, command: CommandObject, telegram_user: User) -> None:
    if not command.args:
        await message.answer(await issue_code(telegram_user))
        return

    code = command.args.strip().split()[0]
    async with db_session() as session:
        record = await AuthService(session).check_telegram_code(code)

    if record is None:
        await message.answer("❌ Code is invalid, already used or expired.")
        return

    await message.answer(
        f"✅ Code <code>{escape(record.code)}</code> is valid for "
        f"<code>{escape(record.username)}</code> until {record.expires_at:%H:%M:%S} UTC."
    )


@router.callback_query(MenuCallback.filter(F.action == "login_code"))
async def on_login_code(callback: CallbackQuery, telegram_user: User) -> None:
    text = await issue_code(telegram_user)
    if isinstance(callback.message, Message):
        await callback.message.edit_text(text)
    await callback.answer("✅ Code created")
