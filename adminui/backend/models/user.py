"""
User Model.

An operator known to the panel. Rows are created on first login.
"""

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from adminui.backend.models.base import Base, CreatedAtMixin


class User(CreatedAtMixin, Base):
    """Operator account, keyed by username."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
    )
    ssh_public_key: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )
    last_login: Mapped[datetime | None] = mapped_column(
        DateTime,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username!r})>"
