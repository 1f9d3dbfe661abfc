"""
Database Models.

Importing this package registers every table on Base.metadata.
"""

from adminui.backend.models.activity import ActivityLog
from adminui.backend.models.auth import AuthSession, TelegramCode
from adminui.backend.models.base import Base
from adminui.backend.models.credentials import SshKey, WebAuthnCredential
from adminui.backend.models.user import User
from adminui.backend.models.user_settings import UserSettings

__all__ = [
    "ActivityLog",
    "AuthSession",
    "Base",
    "SshKey",
    "TelegramCode",
    "User",
    "UserSettings",
    "WebAuthnCredential",
]
