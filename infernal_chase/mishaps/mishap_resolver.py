"""
Mishap Resolver - damage gating and rejection-sampled mishap rolls.

Damage below a vehicle's damage threshold is ignored outright. Damage at or
above the mishap threshold also triggers a d20 roll on the mishap table.
Results that cannot apply to the vehicle (a non-stacking mishap that is
already active, or a stacking one with nothing left to reduce) are rerolled
up to a fixed number of attempts; if none of those rolls lands on a valid
entry, no mishap happens.
"""

from dataclasses import dataclass, field
import logging
from typing import Optional

from infernal_chase.data_models import (
    DiceRoller,
    Mishap,
    MishapDuration,
    MishapSeverity,
    Vehicle,
)
from infernal_chase.mishaps.mishap_table import (
    MISHAP_TABLE,
    mishap_for_roll,
    mishap_severity,
    new_active_mishap,
    table_entry_for,
)
from infernal_chase.observability.run_log import get_run_log

logger = logging.getLogger(__name__)

MAX_MISHAP_ATTEMPTS = 20
MISHAP_TABLE_ID = "mishap_d20"
FAILED_CHECK_MARGIN = 5
HELM_ZONE_ID = "helm"


@dataclass
class VehicleMishapState:
    """The parts of a vehicle that decide which mishaps can still apply."""
    current_speed: int
    damage_threshold: int
    weapon_count: int
    active_mishaps: list[Mishap] = field(default_factory=list)
    has_helm: bool = True

    @classmethod
    def from_vehicle(cls, vehicle: Vehicle) -> "VehicleMishapState":
        return cls(
            current_speed=vehicle.current_speed or 0,
            damage_threshold=vehicle.template.damage_threshold,
            weapon_count=len(vehicle.template.weapons),
            active_mishaps=list(vehicle.active_mishaps),
            has_helm=vehicle.template.get_zone(HELM_ZONE_ID) is not None,
        )


@dataclass
class DamageGate:
    """Whether a hit is absorbed and whether it forces a mishap roll."""
    absorbed: bool
    triggers_mishap: bool


@dataclass
class MishapRoll:
    """A successful mishap roll."""
    roll: int
    mishap: Mishap
    reroll_count: int
    severity: MishapSeverity


@dataclass
class DamageResolution:
    """Outcome of one damage event against a vehicle."""
    damage: int
    hp_delta: int
    absorbed: bool
    mishap_triggered: bool
    mishap_roll: Optional[MishapRoll] = None
    applied_mishap: Optional[Mishap] = None


# =============================================================================
# DAMAGE GATE
# =============================================================================


def on_damage(damage: int, threshold: int, mishap_threshold: int) -> DamageGate:
    """
    Classify a single hit.

    damage < threshold          absorbed, no HP loss, no roll
    threshold <= damage         HP loss
    damage >= mishap_threshold  HP loss and a mishap roll
    """
    damage = max(0, damage)
    if damage < threshold:
        return DamageGate(absorbed=True, triggers_mishap=False)
    return DamageGate(absorbed=False, triggers_mishap=damage >= mishap_threshold)


def check_mishap_from_failed_check(roll: int, dc: int) -> bool:
    """A failed vehicle ability check causes a mishap when it misses by more than 5."""
    return roll < dc - FAILED_CHECK_MARGIN


# =============================================================================
# VALIDITY
# =============================================================================


def _total_reduction(active: list[Mishap], name: str, attribute: str) -> int:
    return sum(
        getattr(m.mechanical_effect, attribute) for m in active if m.name == name
    )


def is_mishap_valid(entry: Mishap, state: VehicleMishapState) -> bool:
    """Would this table entry have any effect on the vehicle right now?"""
    active = state.active_mishaps

    if not entry.stackable:
        if any(table_entry_for(m).name == entry.name for m in active):
            return False
        if entry.mechanical_effect.zone_obscured and not state.has_helm:
            return False
        return True

    if entry.mechanical_effect.speed_reduction:
        reduced = _total_reduction(active, entry.name, "speed_reduction")
        return state.current_speed - reduced > 0

    if entry.mechanical_effect.damage_threshold_reduction:
        reduced = _total_reduction(active, entry.name, "damage_threshold_reduction")
        return state.damage_threshold - reduced > 0

    if entry.mechanical_effect.disable_weapons:
        disabled = sum(1 for m in active if m.name == entry.name)
        return state.weapon_count - disabled > 0

    return True


def available_mishaps(state: VehicleMishapState) -> list[Mishap]:
    return [entry for entry in MISHAP_TABLE if is_mishap_valid(entry, state)]


# =============================================================================
# ROLLING
# =============================================================================


def roll_mishap(
    state: VehicleMishapState,
    max_attempts: int = MAX_MISHAP_ATTEMPTS,
    vehicle_name: str = "vehicle",
) -> Optional[MishapRoll]:
    """
    Roll d20 on the mishap table, rerolling results that cannot apply.

    Returns:
        MishapRoll, or None when no entry is valid or every attempt
        landed on an invalid entry
    """
    if not available_mishaps(state):
        logger.warning(f"No valid mishaps available for {vehicle_name}")
        return None

    for attempt in range(max(1, max_attempts)):
        result = DiceRoller.roll_d20(f"Mishap roll for {vehicle_name}", table_id=MISHAP_TABLE_ID)
        entry = mishap_for_roll(result.total)
        if is_mishap_valid(entry, state):
            return MishapRoll(
                roll=result.total,
                mishap=entry,
                reroll_count=attempt,
                severity=mishap_severity(result.total),
            )
        logger.debug(f"Mishap roll {result.total} ({entry.name}) cannot apply to {vehicle_name}; rerolling")

    logger.warning(
        f"Mishap roll for {vehicle_name} found no valid result in {max_attempts} attempts"
    )
    return None


def apply_mishap(vehicle: Vehicle, mishap_roll: MishapRoll) -> Optional[Mishap]:
    """
    Record a rolled mishap on the vehicle.

    Instant mishaps resolve immediately and are never kept in the active set.
    """
    if mishap_roll.mishap.duration == MishapDuration.INSTANT:
        return None
    active = new_active_mishap(mishap_roll.mishap)
    vehicle.active_mishaps.append(active)
    return active


def roll_and_apply(
    vehicle: Vehicle,
    max_attempts: int = MAX_MISHAP_ATTEMPTS,
) -> tuple[Optional[MishapRoll], Optional[Mishap]]:
    """Roll a mishap for a vehicle, apply it, and log the outcome."""
    state = VehicleMishapState.from_vehicle(vehicle)
    mishap_roll = roll_mishap(state, max_attempts=max_attempts, vehicle_name=vehicle.name)
    run_log = get_run_log()

    if mishap_roll is None:
        run_log.log_custom(
            "no_valid_mishap",
            {"vehicle_id": vehicle.id, "vehicle_name": vehicle.name},
        )
        logger.warning(f"Mishap triggered but no valid mishaps available for {vehicle.name}")
        return None, None

    applied = apply_mishap(vehicle, mishap_roll)
    reroll_note = (
        f" (rerolled {mishap_roll.reroll_count}x to find valid mishap)"
        if mishap_roll.reroll_count
        else ""
    )
    logger.info(
        f"MISHAP! {vehicle.name}: {mishap_roll.mishap.name} "
        f"(rolled {mishap_roll.roll}){reroll_note}"
    )
    run_log.log_table_lookup(
        table_id=MISHAP_TABLE_ID,
        table_name="Mishap",
        roll_total=mishap_roll.roll,
        result_text=mishap_roll.mishap.name,
        reroll_count=mishap_roll.reroll_count,
        context={
            "vehicle_id": vehicle.id,
            "severity": mishap_roll.severity.value,
            "applied": applied is not None,
        },
    )
    return mishap_roll, applied


def resolve_damage(
    damage: int,
    vehicle: Vehicle,
    damage_threshold: Optional[int] = None,
    mishap_threshold: Optional[int] = None,
    max_attempts: int = MAX_MISHAP_ATTEMPTS,
) -> DamageResolution:
    """
    Run one hit through the threshold gate and, if warranted, the mishap table.

    Thresholds default to the vehicle's effective damage threshold and its
    template mishap threshold. Hit points are not modified here; the caller
    applies hp_delta.
    """
    damage = max(0, damage)
    if damage_threshold is None:
        damage_threshold = vehicle.effective_damage_threshold()
    if mishap_threshold is None:
        mishap_threshold = vehicle.template.mishap_threshold

    gate = on_damage(damage, damage_threshold, mishap_threshold)
    if gate.absorbed:
        logger.info(
            f"{vehicle.name} ignores {damage} damage (threshold {damage_threshold})"
        )
        return DamageResolution(
            damage=damage,
            hp_delta=0,
            absorbed=True,
            mishap_triggered=False,
        )

    resolution = DamageResolution(
        damage=damage,
        hp_delta=-damage,
        absorbed=False,
        mishap_triggered=gate.triggers_mishap,
    )
    if gate.triggers_mishap:
        resolution.mishap_roll, resolution.applied_mishap = roll_and_apply(vehicle, max_attempts)
    return resolution
