"""
User Settings Model.

Dashboard layout preferences stored as opaque JSON text per operator.
"""

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from adminui.backend.core.utils import utc_now
from adminui.backend.models.base import Base


class UserSettings(Base):
    __tablename__ = "user_settings"

    username: Mapped[str] = mapped_column(String(64), primary_key=True)
    card_layouts: Mapped[str | None] = mapped_column(Text, nullable=True)
    card_heights: Mapped[str | None] = mapped_column(Text, nullable=True)
    collapsed_cards: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
    )
