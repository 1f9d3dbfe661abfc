"""
Update logging for the admin bot.

Each update is logged once on arrival and once on completion, always
with source="telegram". Message arguments are never logged: /auth_code
takes a login code as its argument.
"""

import time
from typing import Any, Awaitable, Callable

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject, Update

from adminui.backend.core.logging import get_logger, log_with_source

logger = get_logger(__name__)

Handler = Callable[[TelegramObject, dict[str, Any]], Awaitable[Any]]


def describe_update(event: TelegramObject) -> dict[str, Any]:
    """Who sent the update, from which chat, and which command or button."""
    if not isinstance(event, Update):
        return {}

    fields: dict[str, Any] = {"update_id": event.update_id, "update_type": event.event_type}
    message, query = event.message, event.callback_query

    if message is not None:
        fields["chat_id"] = message.chat.id
        sender = message.from_user
        if message.text and message.text.startswith("/"):
            fields["command"] = message.text.split(maxsplit=1)[0]
    elif query is not None:
        sender = query.from_user
        fields["callback_data"] = query.data
        if query.message is not None:
            fields["chat_id"] = query.message.chat.id
    else:
        sender = None

    if sender is not None:
        fields["user_id"] = sender.id
        fields["username"] = sender.username
    return fields


class LoggingMiddleware(BaseMiddleware):
    """Outer middleware timing every update through the dispatcher."""

    async def __call__(self, handler: Handler, event: TelegramObject, data: dict[str, Any]) -> Any:
        fields = describe_update(event)
        started = time.perf_counter()
        log_with_source(logger, "telegram", "info", "Telegram update received", **fields)

        def elapsed() -> float:
            return round((time.perf_counter() - started) * 1000, 2)

        try:
            result = await handler(event, data)
        except Exception as exc:
            log_with_source(
                logger, "telegram", "error", "Telegram update failed",
                error=str(exc), error_type=type(exc).__name__, elapsed_ms=elapsed(), **fields,
            )
            raise

        log_with_source(logger, "telegram", "debug", "Telegram update handled", elapsed_ms=elapsed(), **fields)
        return result
