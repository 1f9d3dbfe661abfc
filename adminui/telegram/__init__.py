"""
Telegram Bot.

aiogram v3 bot for operators: login codes, host status and the same
whitelisted actions as the panel.

The bot is a thin presentation layer. Handlers call the backend services
in-process, so validation and the audit trail are shared with the HTTP API.

Modes:
- webhook: mounted into the FastAPI app (application.telegram.mode = webhook)
- polling: ``python run.py --action bot``

Structure:
    adminui/telegram/
    ├── bot.py               # Bot and dispatcher setup
    ├── webhook.py           # Webhook endpoint for FastAPI
    ├── formatting.py        # HTML renderings of service results
    ├── handlers/            # common, auth, server commands
    ├── middlewares/         # logging, admin whitelist, rate limiting
    ├── keyboards/           # Inline keyboard builders
    ├── callbacks/           # CallbackData factories
    └── services/            # Notifications and backend session helpers

Environment Variables:
    TELEGRAM_BOT_TOKEN: Bot token from BotFather
    TELEGRAM_WEBHOOK_SECRET: Secret for webhook validation
"""

from adminui.telegram.bot import create_bot, create_dispatcher, get_bot, get_dispatcher

__all__ = [
    "create_bot",
    "create_dispatcher",
    "get_bot",
    "get_dispatcher",
]
