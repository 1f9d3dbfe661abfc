"""Declarative base and the column mixins the panel's tables share."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from adminui.backend.core.utils import utc_now


def new_id() -> str:
    return str(uuid4())


class Base(DeclarativeBase):
    pass


class CreatedAtMixin:
    # Naive UTC, see utils.utc_now
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utc_now, nullable=False)


class UUIDMixin:
    """String UUID primary key, generated client side so it is known before flush."""

    id: Mapped[str] = mapped_column(primary_key=True, default=new_id)
