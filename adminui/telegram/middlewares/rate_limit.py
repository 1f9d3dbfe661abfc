"""
Per-admin flood protection for the bot.

Messages and button presses share one budget per Telegram user, taken
from security.rate_limiting.telegram and counted by the same
RateLimiter that guards the login endpoints.
"""

from typing import Any, Awaitable, Callable

from aiogram import BaseMiddleware
from aiogram.types import CallbackQuery, Message, TelegramObject

from adminui.backend.core.rate_limiter import RateLimiter, get_rate_limiter

CHANNEL = "telegram"


def _sender_id(event: TelegramObject) -> int | None:
    if isinstance(event, (Message, CallbackQuery)) and event.from_user:
        return event.from_user.id
    return None


class RateLimitMiddleware(BaseMiddleware):
    def __init__(self, limiter: RateLimiter | None = None) -> None:
        self._limiter = limiter

    @property
    def limiter(self) -> RateLimiter:
        return self._limiter or get_rate_limiter()

    async def __call__(
        self,
        handler: Callable[[TelegramObject, dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: dict[str, Any],
    ) -> Any:
        sender = _sender_id(event)
        if sender is not None:
            verdict = self.limiter.check(CHANNEL, str(sender))
            if not verdict.allowed:
                await self._refuse(event, verdict.retry_after_seconds)
                return None
        return await handler(event, data)

    @staticmethod
    async def _refuse(event: TelegramObject, retry_after: int) -> None:
        notice = f"⏳ Too many requests. Try again in {retry_after} seconds."
        if isinstance(event, CallbackQuery):
            await event.answer(notice, show_alert=True)
        elif isinstance(event, Message):
            await event.answer(notice)
