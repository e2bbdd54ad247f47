"""
Encounter phase state machine.

An encounter starts in SETUP, where vehicles and creatures are placed
freely. START_COMBAT moves it to COMBAT, where movement budgets and the
scale ratchet apply. Combat either ends or is reset back to setup.

All transitions are validated and logged to the RunLog.
"""

from dataclasses import dataclass
from datetime import datetime
import logging
import math
from typing import Any, Callable, Optional

from infernal_chase.data_models import EncounterPhase
from infernal_chase.observability.run_log import get_run_log

logger = logging.getLogger(__name__)


@dataclass
class PhaseTransition:
    """A valid phase transition."""

    from_phase: EncounterPhase
    to_phase: EncounterPhase
    trigger: str
    description: str = ""

    def __hash__(self) -> int:
        return hash((self.from_phase, self.to_phase, self.trigger))


@dataclass
class TransitionLog:
    """History entry for a phase transition."""
    timestamp: datetime
    from_phase: str
    to_phase: str
    trigger: str
    round_number: int = 0


VALID_TRANSITIONS: list[PhaseTransition] = [
    PhaseTransition(
        EncounterPhase.SETUP,
        EncounterPhase.COMBAT,
        "start_combat",
        "Placement finished, initiative rolled",
    ),
    PhaseTransition(
        EncounterPhase.COMBAT,
        EncounterPhase.ENDED,
        "end_combat",
        "One side destroyed, escaped or surrendered",
    ),
    PhaseTransition(
        EncounterPhase.COMBAT,
        EncounterPhase.SETUP,
        "reset_encounter",
        "Abandon combat and return to placement",
    ),
    PhaseTransition(
        EncounterPhase.ENDED,
        EncounterPhase.SETUP,
        "reset_encounter",
        "Prepare the next encounter",
    ),
]


class InvalidTransitionError(Exception):
    """Raised when an invalid phase transition is attempted."""

    pass


class PhaseMachine:
    """
    Tracks the encounter phase and round counter.

    Round 0 is setup. Combat starts at round 1 and every next_round()
    advances the counter by one.
    """

    def __init__(self, initial_phase: EncounterPhase = EncounterPhase.SETUP):
        self._phase: EncounterPhase = initial_phase
        self._round: int = 1 if initial_phase == EncounterPhase.COMBAT else 0
        self._history: list[TransitionLog] = []
        self._post_transition_hooks: list[Callable] = []

        self._valid_transitions: dict[tuple[EncounterPhase, str], EncounterPhase] = {}
        for transition in VALID_TRANSITIONS:
            self._valid_transitions[(transition.from_phase, transition.trigger)] = transition.to_phase

    @property
    def phase(self) -> EncounterPhase:
        return self._phase

    @property
    def round_number(self) -> int:
        return self._round

    @property
    def history(self) -> list[TransitionLog]:
        return self._history.copy()

    def can_transition(self, trigger: str) -> bool:
        return (self._phase, trigger) in self._valid_transitions

    def get_valid_triggers(self) -> list[str]:
        return [trigger for (phase, trigger) in self._valid_transitions if phase == self._phase]

    def transition(self, trigger: str, context: Optional[dict[str, Any]] = None) -> EncounterPhase:
        """
        Attempt a phase transition.

        Raises:
            InvalidTransitionError: If the trigger is not valid from the current phase
        """
        key = (self._phase, trigger)
        if key not in self._valid_transitions:
            raise InvalidTransitionError(
                f"Invalid transition: Cannot trigger '{trigger}' from phase "
                f"'{self._phase.value}'. Valid triggers: {self.get_valid_triggers()}"
            )

        old_phase = self._phase
        new_phase = self._valid_transitions[key]
        self._phase = new_phase

        if new_phase == EncounterPhase.COMBAT:
            self._round = 1
        elif new_phase == EncounterPhase.SETUP:
            self._round = 0

        self._log_transition(old_phase, new_phase, trigger, context)

        for hook in self._post_transition_hooks:
            hook(old_phase, new_phase, trigger, context or {})

        return new_phase

    def next_round(self) -> int:
        """
        Advance the round counter.

        Raises:
            InvalidTransitionError: Outside of combat
        """
        if self._phase != EncounterPhase.COMBAT:
            raise InvalidTransitionError(
                f"Rounds only advance during combat (phase is '{self._phase.value}')"
            )
        self._round += 1
        logger.info(f"Round {self._round} begins")
        return self._round

    def sync_round(self, round_number: int) -> int:
        """
        Adopt a round number from an external turn tracker.

        Negative values clamp to 0; non-finite values are ignored.
        """
        if isinstance(round_number, float) and not math.isfinite(round_number):
            return self._round
        self._round = max(0, int(round_number))
        return self._round

    def register_post_hook(self, hook: Callable) -> None:
        """
        Register a hook to run after any transition.

        Called with (old_phase, new_phase, trigger, context).
        """
        self._post_transition_hooks.append(hook)

    def _log_transition(
        self,
        old_phase: EncounterPhase,
        new_phase: EncounterPhase,
        trigger: str,
        context: Optional[dict[str, Any]] = None,
    ) -> None:
        self._history.append(
            TransitionLog(
                timestamp=datetime.now(),
                from_phase=old_phase.value,
                to_phase=new_phase.value,
                trigger=trigger,
                round_number=self._round,
            )
        )
        logger.info(f"Phase {old_phase.value} -> {new_phase.value} ({trigger})")
        get_run_log().log_transition(
            from_state=old_phase.value,
            to_state=new_phase.value,
            trigger=trigger,
            context=context,
        )

    def is_setup(self) -> bool:
        return self._phase == EncounterPhase.SETUP

    def is_combat(self) -> bool:
        return self._phase == EncounterPhase.COMBAT

    def __repr__(self) -> str:
        return f"PhaseMachine(phase={self._phase.value}, round={self._round})"
