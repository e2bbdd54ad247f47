"""
Tactical engine facade.

TacticalEngine is the one object a host (UI event loop, bot, CLI) talks to.
It owns the per-encounter mutable state (phase and round, current scale
tier, movement ledger) and serializes every mutating call behind a single
re-entrant lock so that a move, an undo or a mishap roll is always applied
as a whole.

The resolvers it delegates to are pure functions over the snapshots passed
in; the engine writes back entity positions, active mishaps and speed
modifiers only.
"""

from dataclasses import dataclass, field
import logging
import threading
from typing import Iterable, Optional, Sequence, Union

from infernal_chase.complications.complication_resolver import (
    ActiveComplication,
    VehicleCheck,
    expire_speed_modifiers,
    resolve_vehicle_check,
    roll_complication,
)
from infernal_chase.cover.cover_resolver import (
    CoverResult,
    cover_from_position,
    same_vehicle_cover,
)
from infernal_chase.data_models import (
    BackgroundImage,
    Bounds,
    Creature,
    DiceRoller,
    ElevationZone,
    EncounterPhase,
    MovableEntity,
    Position,
    ScaleName,
    Vehicle,
    VehicleZone,
)
from infernal_chase.elevation.elevation_resolver import ElevationEffects, elevation_effects
from infernal_chase.game_state.phase_machine import PhaseMachine
from infernal_chase.mishaps.mishap_resolver import (
    MAX_MISHAP_ATTEMPTS,
    DamageResolution,
    MishapRoll,
    resolve_damage,
    roll_and_apply,
)
from infernal_chase.movement.movement_ledger import (
    DEFAULT_WALK_SPEED,
    MovementLedger,
    MoveResult,
)
from infernal_chase.observability.run_log import get_run_log
from infernal_chase.scale.scale_resolver import (
    SCALE_TIERS,
    ScaleResolver,
    ScaleTier,
    engagement_distance,
)

logger = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================


@dataclass
class EngineConfig:
    """Configuration for one encounter's engine."""

    max_mishap_attempts: int = MAX_MISHAP_ATTEMPTS
    default_creature_walk_speed: int = DEFAULT_WALK_SPEED
    scale_tiers: tuple[ScaleTier, ...] = field(default_factory=lambda: SCALE_TIERS)
    initial_scale: ScaleName = ScaleName.TACTICAL
    initial_phase: EncounterPhase = EncounterPhase.SETUP
    bounds: Optional[Bounds] = None

    # Runtime options
    seed: Optional[int] = None
    verbose: bool = False

    def __post_init__(self):
        """Accept plain strings for the enum fields."""
        if isinstance(self.initial_scale, str):
            self.initial_scale = ScaleName(self.initial_scale)
        if isinstance(self.initial_phase, str):
            self.initial_phase = EncounterPhase(self.initial_phase)
        self.max_mishap_attempts = max(1, self.max_mishap_attempts)
        self.default_creature_walk_speed = max(0, self.default_creature_walk_speed)


# =============================================================================
# TACTICAL ENGINE
# =============================================================================


class TacticalEngine:
    """
    Per-encounter resolution engine.

    All methods are synchronous. Mutating methods hold the engine lock for
    their whole duration.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()
        self._lock = threading.RLock()

        self.phase_machine = PhaseMachine(self.config.initial_phase)
        self.scale = ScaleResolver(self.config.initial_scale, self.config.scale_tiers)
        self.ledger = MovementLedger(
            round_number=self.phase_machine.round_number,
            default_walk_speed=self.config.default_creature_walk_speed,
        )
        self.bounds: Optional[Bounds] = self.config.bounds

        if self.config.seed is not None:
            DiceRoller.set_seed(self.config.seed)

        get_run_log().set_round_provider(lambda: self.ledger.round_number)
        logger.debug(
            f"TacticalEngine ready (phase={self.phase.value}, scale={self.current_tier.name.value})"
        )

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def phase(self) -> EncounterPhase:
        return self.phase_machine.phase

    @property
    def round_number(self) -> Optional[int]:
        return self.ledger.round_number

    @property
    def current_tier(self) -> ScaleTier:
        return self.scale.current_tier

    def set_background_image(self, image: Optional[BackgroundImage]) -> Optional[Bounds]:
        """Derive movement bounds from a background image (None clears them)."""
        with self._lock:
            self.bounds = Bounds.from_background_image(image) if image else None
            return self.bounds

    # =========================================================================
    # PHASE AND ROUND
    # =========================================================================

    def start_combat(self) -> EncounterPhase:
        with self._lock:
            phase = self.phase_machine.transition("start_combat")
            self._sync_round(self.phase_machine.round_number)
            return phase

    def end_combat(self) -> EncounterPhase:
        with self._lock:
            return self.phase_machine.transition("end_combat")

    def reset_encounter(self) -> EncounterPhase:
        with self._lock:
            phase = self.phase_machine.transition("reset_encounter")
            self._sync_round(self.phase_machine.round_number)
            return phase

    def next_round(self, vehicles: Iterable[Vehicle] = ()) -> int:
        """Advance the round; speed modifiers of the given vehicles that have run out are dropped."""
        with self._lock:
            round_number = self.phase_machine.next_round()
            self._sync_round(round_number)
            for vehicle in vehicles:
                expire_speed_modifiers(vehicle, round_number)
            return round_number

    def sync_round(self, round_number: int) -> bool:
        """
        Feed the round counter from an external turn tracker.

        Returns:
            True if the round changed and the ledger was reset
        """
        with self._lock:
            return self._sync_round(self.phase_machine.sync_round(round_number))

    def _sync_round(self, round_number: int) -> bool:
        old_round = self.ledger.round_number
        if not self.ledger.sync_round(round_number):
            return False
        get_run_log().log_round(old_round, round_number)
        return True

    # =========================================================================
    # SCALE
    # =========================================================================

    def resolve_scale(
        self,
        vehicles: Iterable[Vehicle],
        creatures: Iterable[Creature] = (),
    ) -> ScaleTier:
        """
        Measure the engagement distance and apply the auto-tier policy.

        Returns:
            The tier in force after the update
        """
        with self._lock:
            closest = engagement_distance(list(vehicles), list(creatures))
            self.scale.auto_update(closest, self.phase)
            return self.scale.current_tier

    def select_scale(self, name: Union[ScaleName, str]) -> ScaleTier:
        with self._lock:
            return self.scale.select_tier(name)

    # =========================================================================
    # MOVEMENT
    # =========================================================================

    def request_move(
        self,
        entity: MovableEntity,
        dx: float,
        dy: float,
        bounds: Optional[Bounds] = None,
    ) -> MoveResult:
        """
        Move an entity by a requested displacement under the current rules.

        The accepted position is written back onto the entity.
        """
        with self._lock:
            result = self.ledger.request_move(
                entity,
                dx,
                dy,
                tier=self.scale.current_tier,
                phase=self.phase,
                bounds=bounds if bounds is not None else self.bounds,
            )
            run_log = get_run_log()

            if result.rejected:
                run_log.log_movement(
                    entity_id=entity.ledger_key,
                    entity_name=entity.name,
                    feet_moved=0.0,
                    accepted=False,
                    reason=result.reason or "",
                )
                return result

            if result.feet_moved > 0:
                entity.position = result.new_position
                run_log.log_movement(
                    entity_id=entity.ledger_key,
                    entity_name=entity.name,
                    feet_moved=result.feet_moved,
                    context={
                        "phase": self.phase.value,
                        "remaining": result.remaining,
                        "locked_steering": result.locked_steering,
                    },
                )
            return result

    def remaining_movement(self, entity: MovableEntity) -> float:
        with self._lock:
            return self.ledger.remaining_movement(entity, self.scale.current_tier)

    def undo_last_move(self, entities: Sequence[MovableEntity] = ()) -> Optional[Position]:
        """
        Undo the most recent move of any entity.

        If the moved entity is among `entities` its position is restored in
        place. Returns the restored position, or None if nothing to undo.
        """
        with self._lock:
            entry = self.ledger.undo()
            if entry is None:
                logger.debug("Nothing to undo")
                return None

            for entity in entities:
                if entity.kind == entry.entity_kind and entity.id == entry.entity_id:
                    entity.position = entry.previous_position.copy()
                    break
            else:
                logger.debug(f"Undo target {entry.ledger_key} not supplied; caller restores position")

            get_run_log().log_movement(
                entity_id=entry.ledger_key,
                feet_moved=entry.feet_moved,
                undo=True,
            )
            return entry.previous_position.copy()

    # =========================================================================
    # ATTACKS
    # =========================================================================

    def attack_arc_and_cover(
        self,
        attacker_pos: Position,
        target_vehicle: Vehicle,
        target_zone: VehicleZone,
        attacker_vehicle: Optional[Vehicle] = None,
        attacker_zone: Optional[VehicleZone] = None,
    ) -> CoverResult:
        """
        Cover for an attack on a station of target_vehicle.

        When the attacker rides the target vehicle itself, arcs are skipped.
        """
        if attacker_vehicle is not None and attacker_vehicle.id == target_vehicle.id:
            return same_vehicle_cover(attacker_zone, target_zone)
        return cover_from_position(attacker_pos, target_vehicle, target_zone)

    def elevation_effects(
        self,
        attacker_pos: Position,
        target_pos: Position,
        zones: Iterable[ElevationZone],
        weapon_range: Union[int, str, None],
    ) -> ElevationEffects:
        return elevation_effects(attacker_pos, target_pos, zones, weapon_range)

    # =========================================================================
    # DAMAGE AND MISHAPS
    # =========================================================================

    def resolve_damage(
        self,
        damage: int,
        vehicle: Vehicle,
        damage_threshold: Optional[int] = None,
        mishap_threshold: Optional[int] = None,
    ) -> DamageResolution:
        with self._lock:
            return resolve_damage(
                damage,
                vehicle,
                damage_threshold=damage_threshold,
                mishap_threshold=mishap_threshold,
                max_attempts=self.config.max_mishap_attempts,
            )

    def roll_mishap(self, vehicle: Vehicle) -> Optional[MishapRoll]:
        """Manual mishap roll (failed check or GM call), applied like a damage mishap."""
        with self._lock:
            mishap_roll, _ = roll_and_apply(vehicle, self.config.max_mishap_attempts)
            return mishap_roll

    # =========================================================================
    # COMPLICATIONS
    # =========================================================================

    def roll_complication(self, vehicles: Iterable[Vehicle] = ()) -> Optional[ActiveComplication]:
        """End-of-round complication roll at the scale in force."""
        with self._lock:
            return roll_complication(
                self.scale.current_tier.name,
                round_number=self.round_number or 0,
                vehicles=vehicles,
            )

    def resolve_complication_check(
        self,
        active: ActiveComplication,
        vehicle: Vehicle,
        modifier: int = 0,
        check_total: Optional[int] = None,
    ) -> VehicleCheck:
        with self._lock:
            return resolve_vehicle_check(active, vehicle, modifier=modifier, check_total=check_total)
