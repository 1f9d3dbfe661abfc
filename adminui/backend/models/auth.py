"""
Authentication Models.

Login sessions (audit only, tokens are never checked against them) and
Telegram one-time codes.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from adminui.backend.models.base import Base, CreatedAtMixin


class AuthSession(CreatedAtMixin, Base):
    """One successful login. ``id`` is the token's jti."""

    __tablename__ = "auth_sessions"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    username: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("users.username"),
        nullable=False,
        index=True,
    )
    method: Mapped[str] = mapped_column(String(16), nullable=False)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class TelegramCode(CreatedAtMixin, Base):
    """One-time login code delivered through the Telegram bot."""

    __tablename__ = "telegram_codes"

    code: Mapped[str] = mapped_column(String(16), primary_key=True)
    username: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("users.username"),
        nullable=False,
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    used: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    def __repr__(self) -> str:
        return f"<TelegramCode(username={self.username!r}, used={self.used})>"
