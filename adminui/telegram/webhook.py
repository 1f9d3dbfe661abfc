"""
Telegram webhook route, mounted into the panel's FastAPI app.

Only requests carrying TELEGRAM_WEBHOOK_SECRET in the secret-token
header reach the dispatcher.
"""

import hmac
from typing import TYPE_CHECKING

from fastapi import APIRouter, Request, Response

from adminui.backend.core.config import get_app_config, get_settings
from adminui.backend.core.logging import get_logger

if TYPE_CHECKING:
    from aiogram import Bot, Dispatcher

logger = get_logger(__name__)

SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"
DEFAULT_WEBHOOK_PATH = "/webhook/telegram"


def get_webhook_path() -> str:
    return get_app_config().application.telegram.webhook_path or DEFAULT_WEBHOOK_PATH


def get_webhook_url(base_url: str | None = None) -> str:
    """Public URL Telegram should post to; ``base_url`` overrides application.telegram.webhook_base_url."""
    base = base_url or get_app_config().application.telegram.webhook_base_url
    return base.rstrip("/") + get_webhook_path()


def _secret_matches(request: Request, expected: str) -> bool:
    supplied = request.headers.get(SECRET_HEADER)
    return bool(supplied) and hmac.compare_digest(supplied, expected)


def get_webhook_router(bot: "Bot", dp: "Dispatcher") -> APIRouter:
    """
    Router with ``POST <webhook_path>`` and a GET health probe beside it.

    A bad or missing secret gets 403. Anything that goes wrong after
    that is logged and still answered with 200; a non-2xx answer makes
    Telegram redeliver the same update.
    """
    from aiogram.types import Update

    path = get_webhook_path()
    secret = get_settings().telegram_webhook_secret
    router = APIRouter(tags=["telegram"])

    @router.post(path, include_in_schema=False)
    async def telegram_webhook(request: Request) -> Response:
        if secret and not _secret_matches(request, secret):
            client_ip = request.client.host if request.client else None
            logger.warning("Webhook call with wrong secret", extra={"client_ip": client_ip})
            return Response(status_code=403)

        try:
            update = Update.model_validate(await request.json(), context={"bot": bot})
            await dp.feed_update(bot, update)
        except Exception as exc:
            logger.error("Telegram update dropped", extra={"error": str(exc)}, exc_info=True)
        return Response(status_code=200)

    @router.get(path + "/health", include_in_schema=False)
    async def telegram_webhook_health() -> dict:
        return {"status": "healthy", "webhook_path": path}

    return router
