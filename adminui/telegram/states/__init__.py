"""
FSM State Definitions.

aiogram v3 FSM: states are StatesGroup members; FSMContext stores the
current state and its data per chat (MemoryStorage).
"""

from adminui.telegram.states.confirmation import ActionConfirmation

__all__ = [
    "ActionConfirmation",
]
