"""
Messages pushed to the admin chats.

The panel uses this for one-time login codes and for "someone just
logged in" alerts. Every admin in application.telegram.admin_ids gets a
copy; a chat that blocked the bot is logged and skipped.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from html import escape
from typing import Any

from adminui.backend.core.config import get_app_config
from adminui.backend.core.logging import get_logger, log_with_source
from adminui.backend.core.utils import utc_now

logger = get_logger(__name__)

# Pause between chats, below Telegram's per-bot flood limit
SEND_INTERVAL_SECONDS = 0.05


class AlertType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"

    @property
    def icon(self) -> str:
        return {"info": "ℹ️", "success": "✅", "warning": "⚠️", "error": "❌"}[self.value]


@dataclass
class NotificationResult:
    success: bool
    chat_id: int
    message_id: int | None = None
    error: str | None = None
    timestamp: datetime = field(default_factory=utc_now)


def render_alert(title: str, body: str, alert_type: AlertType, data: dict[str, Any] | None = None) -> str:
    """HTML alert: icon and bold title, the body, then one ``Label: value`` line per data item."""
    text = f"{alert_type.icon} <b>{escape(title)}</b>\n\n{escape(body)}"
    if data:
        facts = (
            f"<b>{key.replace('_', ' ').title()}:</b> <code>{escape(str(value))}</code>"
            for key, value in data.items()
        )
        text += "\n\n" + "\n".join(facts)
    return text


class NotificationService:
    """
    Push messages to the admin chats.

    Args:
        bot: aiogram Bot; when omitted, ``get_bot()`` is called on first send
    """

    def __init__(self, bot: Any = None) -> None:
        self._bot = bot

    @property
    def bot(self) -> Any:
        if self._bot is None:
            from adminui.telegram.bot import get_bot

            self._bot = get_bot()
        return self._bot

    @property
    def admin_ids(self) -> list[int]:
        return get_app_config().application.telegram.admin_ids

    def is_available(self) -> bool:
        """There is at least one admin chat and a bot to reach it with."""
        if not self.admin_ids:
            return False
        if self._bot is not None:
            return True

        from adminui.telegram.bot import is_bot_configured

        return is_bot_configured()

    async def send(self, chat_id: int, text: str, disable_notification: bool = False) -> NotificationResult:
        from aiogram.exceptions import TelegramAPIError

        try:
            sent = await self.bot.send_message(
                chat_id=chat_id,
                text=text,
                disable_notification=disable_notification,
            )
        except TelegramAPIError as exc:
            log_with_source(logger, "telegram", "error", "Admin chat unreachable", chat_id=chat_id, error=str(exc))
            return NotificationResult(success=False, chat_id=chat_id, error=str(exc))

        log_with_source(logger, "telegram", "info", "Admin chat notified", chat_id=chat_id, message_id=sent.message_id)
        return NotificationResult(success=True, chat_id=chat_id, message_id=sent.message_id)

    async def broadcast(self, text: str, disable_notification: bool = False) -> list[NotificationResult]:
        results: list[NotificationResult] = []
        for chat_id in self.admin_ids:
            if results:
                await asyncio.sleep(SEND_INTERVAL_SECONDS)
            results.append(await self.send(chat_id, text, disable_notification))
        return results

    async def send_alert(
        self,
        title: str,
        body: str,
        alert_type: AlertType = AlertType.INFO,
        data: dict[str, Any] | None = None,
    ) -> list[NotificationResult]:
        return await self.broadcast(render_alert(title, body, alert_type, data))

    async def send_login_code(self, code: str, username: str, ttl_seconds: int) -> int:
        """
        Send a one-time login code to every admin chat.

        Returns:
            How many chats received it; 0 means nobody can log in with it
        """
        text = (
            f"🔐 <b>Login code</b>\n\n<code>{escape(code)}</code>\n\n"
            f"User: <code>{escape(username)}</code>\n"
            f"⏱️ Valid for {max(1, ttl_seconds // 60)} min. Enter it on the login page."
        )
        results = await self.broadcast(text)
        delivered = len([r for r in results if r.success])
        log_with_source(
            logger, "telegram", "info", "Login code sent to admin chats",
            username=username, recipients=delivered, failed=len(results) - delivered,
        )
        return delivered

    async def send_login_alert(self, username: str, method: str, ip_address: str | None) -> None:
        facts = {
            "method": method,
            "ip": ip_address or "unknown",
            "time": utc_now().strftime("%Y-%m-%d %H:%M:%S UTC"),
        }
        await self.send_alert("New login", f"{username} logged in to the panel.", AlertType.INFO, data=facts)


_notification_service: NotificationService | None = None


def get_notification_service() -> NotificationService:
    global _notification_service
    if _notification_service is None:
        _notification_service = NotificationService()
    return _notification_service
