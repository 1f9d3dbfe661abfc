"""
Callback Data Factories.

Type-safe inline button payloads using aiogram's CallbackData factory.
"""

from adminui.telegram.callbacks.common import ConfirmCallback, MenuCallback

__all__ = [
    "ConfirmCallback",
    "MenuCallback",
]
