"""
Admin bot middlewares.

Outer middlewares see every update before routing; inner ones only see
messages and callback queries a handler will actually process.
"""

from typing import TYPE_CHECKING

from adminui.telegram.middlewares.auth import AuthMiddleware
from adminui.telegram.middlewares.logging import LoggingMiddleware
from adminui.telegram.middlewares.rate_limit import RateLimitMiddleware

if TYPE_CHECKING:
    from aiogram import Dispatcher

__all__ = ["AuthMiddleware", "LoggingMiddleware", "RateLimitMiddleware", "setup_middlewares"]


def setup_middlewares(dp: "Dispatcher") -> None:
    # Logging first, so updates from non-admins are still recorded
    dp.update.outer_middleware(LoggingMiddleware())
    dp.update.outer_middleware(AuthMiddleware())

    limiter = RateLimitMiddleware()
    for observer in (dp.message, dp.callback_query):
        observer.middleware(limiter)
