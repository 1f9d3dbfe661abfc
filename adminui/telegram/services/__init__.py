"""
Telegram Bot Services.

Notifications to admin chats, and session helpers that let handlers call
the backend services.
"""

from adminui.telegram.services.notifications import (
    AlertType,
    NotificationResult,
    NotificationService,
    get_notification_service,
)

__all__ = [
    "AlertType",
    "NotificationResult",
    "NotificationService",
    "get_notification_service",
]
