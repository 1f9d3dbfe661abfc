"""
Unit tests for Telegram callback data factories.
"""

import pytest

from adminui.telegram.callbacks.common import ConfirmCallback, MenuCallback


class TestMenuCallback:
    def test_prefix(self):
        assert MenuCallback(action="status").pack() == "menu:status"

    def test_unpack_rejects_other_prefix(self):
        with pytest.raises(ValueError):
            MenuCallback.unpack("confirm:kill:1")


class TestConfirmCallback:
    def test_confirmed_by_default(self):
        unpacked = ConfirmCallback.unpack(ConfirmCallback(operation="kill").pack())

        assert unpacked.operation == "kill"
        assert unpacked.confirmed is True

    def test_cancel(self):
        unpacked = ConfirmCallback.unpack(ConfirmCallback(operation="close_port", confirmed=False).pack())

        assert unpacked.confirmed is False

    def test_fits_telegram_callback_limit(self):
        assert len(ConfirmCallback(operation="open_port", confirmed=False).pack().encode()) <= 64
