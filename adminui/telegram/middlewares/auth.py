"""
Authentication Middleware.

Only Telegram user ids listed in application.telegram.admin_ids may use
the bot. Telegram user ids are immutable and cannot be spoofed within the
Bot API.
"""

from typing import Any, Awaitable, Callable

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject, Update, User

from adminui.backend.core.config import get_app_config
from adminui.backend.core.logging import get_logger

logger = get_logger(__name__)


def get_event_user(event: TelegramObject) -> User | None:
    """Sender of a message, callback query or inline query update."""
    if not isinstance(event, Update):
        return None
    if event.message:
        return event.message.from_user
    if event.callback_query:
        return event.callback_query.from_user
    if event.inline_query:
        return event.inline_query.from_user
    return None


class AuthMiddleware(BaseMiddleware):
    """
    Admin whitelist.

    Updates from users outside the whitelist are dropped without a reply,
    so the bot does not reveal itself. An empty whitelist drops everyone.
    Authorized handlers receive ``telegram_user`` in their data.
    """

    def __init__(self, admin_ids: list[int] | None = None) -> None:
        self._admin_ids = admin_ids

    @property
    def admin_ids(self) -> list[int]:
        if self._admin_ids is not None:
            return self._admin_ids
        return get_app_config().application.telegram.admin_ids

    async def __call__(
        self,
        handler: Callable[[TelegramObject, dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: dict[str, Any],
    ) -> Any:
        user = get_event_user(event)
        if user is None:
            # Channel posts, chat member updates and the like are not commands
            return None

        if user.id not in self.admin_ids:
            logger.warning(
                "Unauthorized Telegram access attempt",
                extra={"user_id": user.id, "username": user.username},
            )
            return None

        data["telegram_user"] = user
        return await handler(event, data)
