"""
Confirmation States.
"""

from aiogram.fsm.state import State, StatesGroup


class ActionConfirmation(StatesGroup):
    """
    A state-changing command waiting for Confirm or Cancel.

    FSM data: ``operation`` and ``args`` of the pending command.
    /cancel or the Cancel button clears it.
    """

    confirming = State()
