"""
Unit tests for the encounter phase state machine.
"""

import pytest

from infernal_chase.data_models import EncounterPhase
from infernal_chase.game_state.phase_machine import (
    VALID_TRANSITIONS,
    InvalidTransitionError,
    PhaseMachine,
)
from infernal_chase.observability.run_log import get_run_log


class TestPhaseMachine:
    """Tests for PhaseMachine transitions and rounds."""

    def test_initial_state(self):
        machine = PhaseMachine()
        assert machine.is_setup()
        assert machine.round_number == 0
        assert machine.get_valid_triggers() == ["start_combat"]

    def test_start_combat(self):
        machine = PhaseMachine()
        assert machine.transition("start_combat") == EncounterPhase.COMBAT
        assert machine.is_combat()
        assert machine.round_number == 1

    def test_invalid_trigger_raises(self):
        machine = PhaseMachine()
        with pytest.raises(InvalidTransitionError) as excinfo:
            machine.transition("end_combat")
        assert "start_combat" in str(excinfo.value)

    def test_rounds_advance_in_combat(self):
        machine = PhaseMachine()
        machine.transition("start_combat")
        assert machine.next_round() == 2
        assert machine.next_round() == 3

    def test_sync_round_adopts_external_counter(self):
        machine = PhaseMachine()
        machine.transition("start_combat")
        assert machine.sync_round(5) == 5
        assert machine.next_round() == 6

    def test_sync_round_clamps_bad_values(self):
        machine = PhaseMachine()
        assert machine.sync_round(-3) == 0
        machine.sync_round(4)
        assert machine.sync_round(float("nan")) == 4

    def test_rounds_frozen_outside_combat(self):
        machine = PhaseMachine()
        with pytest.raises(InvalidTransitionError):
            machine.next_round()

    def test_reset_from_ended(self):
        machine = PhaseMachine()
        machine.transition("start_combat")
        machine.next_round()
        machine.transition("end_combat")
        assert machine.phase == EncounterPhase.ENDED
        assert machine.can_transition("reset_encounter")
        machine.transition("reset_encounter")
        assert machine.is_setup()
        assert machine.round_number == 0

    def test_history_recorded(self):
        machine = PhaseMachine()
        machine.transition("start_combat")
        machine.transition("end_combat")
        history = machine.history
        assert [(h.from_phase, h.to_phase) for h in history] == [
            ("setup", "combat"),
            ("combat", "ended"),
        ]

    def test_transitions_logged(self):
        machine = PhaseMachine()
        machine.transition("start_combat", context={"initiative": "party"})
        transition = get_run_log().get_transitions()[-1]
        assert transition.from_state == "setup"
        assert transition.to_state == "combat"
        assert transition.context == {"initiative": "party"}

    def test_post_hooks_called(self):
        machine = PhaseMachine()
        calls = []
        machine.register_post_hook(lambda old, new, trigger, ctx: calls.append((old, new, trigger)))
        machine.transition("start_combat")
        assert calls == [(EncounterPhase.SETUP, EncounterPhase.COMBAT, "start_combat")]

    def test_every_transition_unique(self):
        keys = [(t.from_phase, t.trigger) for t in VALID_TRANSITIONS]
        assert len(keys) == len(set(keys))
