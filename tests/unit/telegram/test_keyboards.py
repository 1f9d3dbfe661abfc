"""
Unit tests for Telegram keyboard builders.
"""

from aiogram.types import InlineKeyboardMarkup

from adminui.telegram.callbacks.common import ConfirmCallback, MenuCallback
from adminui.telegram.keyboards.common import get_admin_menu_keyboard, get_confirmation_keyboard


class TestAdminMenuKeyboard:
    def test_with_dashboard_link(self):
        keyboard = get_admin_menu_keyboard("https://panel.example.com")

        assert isinstance(keyboard, InlineKeyboardMarkup)
        first_row, second_row = keyboard.inline_keyboard
        assert first_row[0].url == "https://panel.example.com"
        assert MenuCallback.unpack(first_row[1].callback_data).action == "login_code"
        assert MenuCallback.unpack(second_row[0].callback_data).action == "status"

    def test_without_dashboard_link(self):
        keyboard = get_admin_menu_keyboard()

        buttons = [button for row in keyboard.inline_keyboard for button in row]
        assert [b.url for b in buttons] == [None, None]
        assert [MenuCallback.unpack(b.callback_data).action for b in buttons] == ["login_code", "status"]


class TestConfirmationKeyboard:
    def test_confirm_and_cancel_on_one_row(self):
        keyboard = get_confirmation_keyboard("restart")

        [row] = keyboard.inline_keyboard
        confirm, cancel = (ConfirmCallback.unpack(button.callback_data) for button in row)
        assert confirm.operation == "restart"
        assert confirm.confirmed is True
        assert cancel.operation == "restart"
        assert cancel.confirmed is False
