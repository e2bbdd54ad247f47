"""Encounter phase management."""

from infernal_chase.game_state.phase_machine import (
    PhaseMachine,
    PhaseTransition,
    TransitionLog,
    InvalidTransitionError,
    VALID_TRANSITIONS,
)

__all__ = [
    "PhaseMachine",
    "PhaseTransition",
    "TransitionLog",
    "InvalidTransitionError",
    "VALID_TRANSITIONS",
]
