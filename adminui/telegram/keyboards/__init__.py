"""
Keyboard Builders.

Inline keyboards for the bot, built with aiogram's InlineKeyboardBuilder.
"""

from adminui.telegram.keyboards.common import get_admin_menu_keyboard, get_confirmation_keyboard

__all__ = [
    "get_admin_menu_keyboard",
    "get_confirmation_keyboard",
]
