"""
Unit tests for Telegram FSM states.
"""

from aiogram.fsm.state import State, StatesGroup

from adminui.telegram.states import ActionConfirmation


class TestActionConfirmation:
    def test_is_states_group(self):
        assert issubclass(ActionConfirmation, StatesGroup)

    def test_confirming_state(self):
        assert isinstance(ActionConfirmation.confirming, State)
        assert ActionConfirmation.confirming.state == "ActionConfirmation:confirming"
