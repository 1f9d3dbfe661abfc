"""
Admin bot wiring.

The aiogram Bot and Dispatcher are built lazily: importing this module
works on hosts where the Telegram channel is off and no token is set.
"""

from typing import TYPE_CHECKING

from adminui.backend.core.config import get_app_config, get_settings
from adminui.backend.core.logging import get_logger

if TYPE_CHECKING:
    from aiogram import Bot, Dispatcher

logger = get_logger(__name__)

_bot: "Bot | None" = None
_dispatcher: "Dispatcher | None" = None


def is_bot_configured() -> bool:
    """True when the Telegram channel is enabled and a token is set."""
    return get_app_config().features.channel_telegram_enabled and bool(get_settings().telegram_bot_token)


def create_bot() -> "Bot":
    """
    Build a Bot that sends HTML-formatted messages.

    Raises:
        RuntimeError: No TELEGRAM_BOT_TOKEN in the environment or config/.env
    """
    from aiogram import Bot
    from aiogram.client.default import DefaultBotProperties
    from aiogram.enums import ParseMode

    token = get_settings().telegram_bot_token
    if not token:
        raise RuntimeError("TELEGRAM_BOT_TOKEN is not set; add it to config/.env to enable the admin bot")

    logger.info("Admin bot created")
    return Bot(token=token, default=DefaultBotProperties(parse_mode=ParseMode.HTML))


def create_dispatcher() -> "Dispatcher":
    """Build a Dispatcher carrying the admin middlewares and every handler router."""
    from aiogram import Dispatcher
    from aiogram.fsm.storage.memory import MemoryStorage

    from adminui.telegram.handlers import get_all_routers
    from adminui.telegram.middlewares import setup_middlewares

    dispatcher = Dispatcher(storage=MemoryStorage())
    setup_middlewares(dispatcher)
    routers = get_all_routers()
    dispatcher.include_routers(*routers)

    logger.info("Admin bot dispatcher created", extra={"routers": len(routers)})
    return dispatcher


def get_bot() -> "Bot":
    global _bot
    if _bot is None:
        _bot = create_bot()
    return _bot


def get_dispatcher() -> "Dispatcher":
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = create_dispatcher()
    return _dispatcher


async def setup_webhook(bot: "Bot", webhook_url: str, secret_token: str) -> None:
    """
    Point Telegram at our webhook route.

    Updates queued while the panel was down are dropped; a stale
    /auth_code or button press should not run after a restart.
    """
    await bot.set_webhook(
        url=webhook_url,
        secret_token=secret_token,
        drop_pending_updates=True,
        allowed_updates=get_dispatcher().resolve_used_update_types(),
    )
    logger.info("Telegram webhook registered", extra={"webhook_url": webhook_url})


async def run_polling() -> None:
    """Long polling, for hosts the Telegram servers cannot reach."""
    bot, dispatcher = get_bot(), get_dispatcher()

    await bot.delete_webhook(drop_pending_updates=True)
    logger.info("Admin bot polling started")
    try:
        await dispatcher.start_polling(bot, allowed_updates=dispatcher.resolve_used_update_types())
    finally:
        await bot.session.close()
        logger.info("Admin bot polling stopped")


async def cleanup_bot(bot: "Bot") -> None:
    global _bot
    await bot.delete_webhook()
    await bot.session.close()
    _bot = None
    logger.info("Telegram webhook removed")
