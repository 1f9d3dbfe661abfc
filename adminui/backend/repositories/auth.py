"""
Authentication Repositories.

Login session records and Telegram one-time codes.
"""

from datetime import datetime

from sqlalchemy import select, update

from adminui.backend.models.auth import AuthSession, TelegramCode
from adminui.backend.repositories.base import BaseRepository


class AuthSessionRepository(BaseRepository[AuthSession]):
    model = AuthSession


class TelegramCodeRepository(BaseRepository[TelegramCode]):
    model = TelegramCode

    async def find_valid(self, code: str, now: datetime) -> TelegramCode | None:
        """Unused, unexpired code, without consuming it."""
        result = await self.session.execute(
            select(TelegramCode).where(
                TelegramCode.code == code,
                TelegramCode.used.is_(False),
                TelegramCode.expires_at > now,
            )
        )
        return result.scalar_one_or_none()

    async def claim(self, code: str, now: datetime) -> TelegramCode | None:
        """
        Mark a code as used if it is still valid.

        A single conditional UPDATE, so two concurrent requests cannot both
        claim the same code.

        Returns:
            The claimed code, or None when it is unknown, used or expired
        """
        result = await self.session.execute(
            update(TelegramCode)
            .where(
                TelegramCode.code == code,
                TelegramCode.used.is_(False),
                TelegramCode.expires_at > now,
            )
            .values(used=True)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return None

        await self.session.flush()
        claimed = await self.session.execute(
            select(TelegramCode)
            .where(TelegramCode.code == code)
            .execution_options(populate_existing=True)
        )
        return claimed.scalar_one()
