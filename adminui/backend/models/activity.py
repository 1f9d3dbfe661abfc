"""
Activity Log Model.

Append-only audit trail. Remote actions write their row as ``pending``
before running and update it with the outcome afterwards.
"""

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from adminui.backend.core.utils import utc_now
from adminui.backend.models.base import Base, UUIDMixin

OUTCOME_PENDING = "pending"
OUTCOME_SUCCEEDED = "succeeded"
OUTCOME_FAILED = "failed"


class ActivityLog(UUIDMixin, Base):
    """One operator action."""

    __tablename__ = "activity_logs"

    # Not a foreign key: bot actions are logged as telegram:<id>
    username: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(64), nullable=False)
    details: Mapped[str | None] = mapped_column(Text, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime,
        default=utc_now,
        nullable=False,
        index=True,
    )
    outcome: Mapped[str] = mapped_column(
        String(16),
        default=OUTCOME_SUCCEEDED,
        nullable=False,
    )
    result: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<ActivityLog(id={self.id}, action={self.action!r}, outcome={self.outcome!r})>"
