"""
Credential Models.

SSH public keys managed through the panel and registered WebAuthn
authenticators. Neither expires or rotates.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from adminui.backend.core.utils import utc_now
from adminui.backend.models.base import Base, CreatedAtMixin, UUIDMixin


class SshKey(UUIDMixin, Base):
    """
    Public key added by an operator.

    The same key line is also written to the managed host's authorized_keys
    file, and is accepted for SSH-signature login.
    """

    __tablename__ = "ssh_keys"

    username: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("users.username"),
        nullable=False,
        index=True,
    )
    public_key: Mapped[str] = mapped_column(Text, nullable=False)
    comment: Mapped[str | None] = mapped_column(String(255), nullable=True)
    added_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=utc_now,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<SshKey(id={self.id}, username={self.username!r})>"


class WebAuthnCredential(CreatedAtMixin, Base):
    """Authenticator registered for an operator, keyed by the credential id."""

    __tablename__ = "webauthn_credentials"

    id: Mapped[str] = mapped_column(String(512), primary_key=True)
    username: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("users.username"),
        nullable=False,
        index=True,
    )
    public_key: Mapped[str] = mapped_column(Text, nullable=False)
    counter: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    def __repr__(self) -> str:
        return f"<WebAuthnCredential(id={self.id!r}, username={self.username!r})>"
