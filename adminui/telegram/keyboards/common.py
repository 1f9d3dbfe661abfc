"""
Common Keyboard Builders.
"""

from aiogram.types import InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from adminui.telegram.callbacks.common import ConfirmCallback, MenuCallback


def get_admin_menu_keyboard(dashboard_url: str | None = None) -> InlineKeyboardMarkup:
    """
    Build the /admin menu.

    Args:
        dashboard_url: Link for the "Open dashboard" button; omitted when empty

    Returns:
        InlineKeyboardMarkup with dashboard, login code and status buttons
    """
    builder = InlineKeyboardBuilder()

    if dashboard_url:
        builder.button(text="🌐 Open dashboard", url=dashboard_url)
    builder.button(text="📱 Get login code", callback_data=MenuCallback(action="login_code"))
    builder.button(text="📊 Server status", callback_data=MenuCallback(action="status"))

    builder.adjust(2 if dashboard_url else 1, 1)

    return builder.as_markup()


def get_confirmation_keyboard(operation: str) -> InlineKeyboardMarkup:
    """Build a Confirm/Cancel keyboard for a pending state-changing command."""
    builder = InlineKeyboardBuilder()

    builder.button(
        text="✅ Confirm",
        callback_data=ConfirmCallback(operation=operation),
    )
    builder.button(
        text="❌ Cancel",
        callback_data=ConfirmCallback(operation=operation, confirmed=False),
    )

    builder.adjust(2)

    return builder.as_markup()
