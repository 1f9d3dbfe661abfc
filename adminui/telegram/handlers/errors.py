"""
Error Handlers.

Application errors raised by services (bad input, command not allowed,
host unreachable) are reported to the operator. Anything else propagates
to the dispatcher and is logged by LoggingMiddleware.
"""

from html import escape

from aiogram import Router
from aiogram.filters import ExceptionTypeFilter
from aiogram.types import ErrorEvent, Message

from adminui.backend.core.exceptions import ApplicationError
from adminui.backend.core.logging import get_logger, log_with_source

logger = get_logger(__name__)

router = Router(name="errors")


@router.errors(ExceptionTypeFilter(ApplicationError))
async def on_application_error(event: ErrorEvent) -> None:
    error: ApplicationError = event.exception  # type: ignore[assignment]
    text = f"❌ {escape(error.message)}"

    log_with_source(
        logger,
        "telegram",
        "warning",
        "Bot command failed",
        error_code=error.code,
        error=error.message,
    )

    update = event.update
    if update.message:
        await update.message.answer(text)
    elif update.callback_query and isinstance(update.callback_query.message, Message):
        await update.callback_query.message.answer(text)
