"""
Common Callback Data Factories.
"""

from aiogram.filters.callback_data import CallbackData


class MenuCallback(CallbackData, prefix="menu"):
    """
    Buttons of the /admin menu.

    Fields:
        action: ``login_code`` or ``status``

    Usage:
        @router.callback_query(MenuCallback.filter(F.action == "status"))
        async def on_status(callback: CallbackQuery):
            ...
    """

    action: str


class ConfirmCallback(CallbackData, prefix="confirm"):
    """
    Answer to a pending state-changing command.

    The command arguments live in the FSM data (ActionConfirmation);
    ``operation`` only ties the button to the command that showed it.

    Fields:
        operation: ``kill``, ``restart``, ``open_port`` or ``close_port``
        confirmed: False when the operator pressed Cancel
    """

    operation: str
    confirmed: bool = True
