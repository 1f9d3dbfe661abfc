"""
Telegram Bot Handlers.

- common.py: /start, /help, /link, /admin, /cancel
- auth.py: /auth_code and the "get login code" button
- server.py: host commands and action confirmations
- errors.py: reports application errors to the operator
"""

from aiogram import Router

from adminui.telegram.handlers.auth import router as auth_router
from adminui.telegram.handlers.common import router as common_router
from adminui.telegram.handlers.errors import router as errors_router
from adminui.telegram.handlers.server import router as server_router

__all__ = [
    "get_all_routers",
    "auth_router",
    "common_router",
    "errors_router",
    "server_router",
]


def get_all_routers() -> list[Router]:
    """Routers to include in the dispatcher, in matching order."""
    return [
        common_router,
        auth_router,
        server_router,
        errors_router,
    ]
