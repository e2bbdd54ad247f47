"""
Complication Resolver - end-of-round complication rolls and vehicle checks.

A d20 is rolled once for the whole battlefield at the scale in force. When
a complication comes up, each vehicle in the chase makes the check it
offers. A vehicle that fails a check whose failure means difficult terrain
or halved speed, or that is hit by an uncontested slowdown, gets a half-speed
SpeedModifier for the following round.
"""

from dataclasses import dataclass, field
import logging
from typing import Iterable, Optional, Union

from infernal_chase.complications.complication_table import (
    complication_for_roll,
    complication_roll_range,
)
from infernal_chase.data_models import (
    Complication,
    ComplicationCheckStatus,
    DiceRoller,
    ScaleName,
    SpeedModifier,
    SpeedModifierDuration,
    Vehicle,
    generate_id,
)
from infernal_chase.observability.run_log import get_run_log

logger = logging.getLogger(__name__)

COMPLICATION_TABLE_ID = "complication_d20"
SLOWING_FAILURES = ("difficult terrain", "speed halved")
HALF_SPEED = 0.5


@dataclass
class VehicleCheck:
    """One vehicle's check against an active complication."""
    vehicle_id: str
    status: ComplicationCheckStatus = ComplicationCheckStatus.PENDING
    total: Optional[int] = None
    speed_modifier: Optional[SpeedModifier] = None


@dataclass
class ActiveComplication:
    """A complication that came up this round and the checks made against it."""
    complication: Complication
    roll: int
    roll_range: str
    scale: ScaleName
    round_number: int
    checks: dict[str, VehicleCheck] = field(default_factory=dict)

    @property
    def is_resolved(self) -> bool:
        return all(c.status != ComplicationCheckStatus.PENDING for c in self.checks.values())

    def pending_vehicle_ids(self) -> list[str]:
        return [vid for vid, c in self.checks.items() if c.status == ComplicationCheckStatus.PENDING]


# =============================================================================
# EFFECTS
# =============================================================================


def slows_vehicle(complication: Complication) -> bool:
    """Does losing to this complication cost speed?"""
    effect = complication.mechanical_effect
    if effect.speed_change < 0:
        return True
    if effect.skill_check is None:
        return False
    failure = effect.skill_check.failure_effect.lower()
    return any(phrase in failure for phrase in SLOWING_FAILURES)


def speed_modifier_for(complication: Complication, round_number: int) -> SpeedModifier:
    """Speed penalty a complication imposes for the given round."""
    change = complication.mechanical_effect.speed_change
    multiplier = max(0.0, 1 + change / 100) if change < 0 else HALF_SPEED
    return SpeedModifier(
        id=generate_id("speed"),
        source=f"{complication.name} complication",
        multiplier=multiplier,
        duration=SpeedModifierDuration.THIS_ROUND,
        applied_at_round=round_number,
    )


def expire_speed_modifiers(
    vehicle: Vehicle,
    round_number: int,
    turn_index: Optional[int] = None,
) -> list[SpeedModifier]:
    """Drop modifiers whose round or turn has passed; returns the dropped ones."""
    expired = [m for m in vehicle.speed_modifiers if m.is_expired(round_number, turn_index)]
    if expired:
        vehicle.speed_modifiers = [m for m in vehicle.speed_modifiers if m not in expired]
        logger.debug(f"{vehicle.name}: {len(expired)} speed modifier(s) expired at round {round_number}")
    return expired


# =============================================================================
# ROLLING
# =============================================================================


def roll_complication(
    scale: Union[ScaleName, str],
    round_number: int = 0,
    vehicles: Iterable[Vehicle] = (),
) -> Optional[ActiveComplication]:
    """
    Roll d20 for a complication at the given scale.

    Returns:
        ActiveComplication with a pending check per vehicle, or None on 11-20
    """
    scale = ScaleName(scale)
    result = DiceRoller.roll_d20(f"Chase complication ({scale.value})", table_id=COMPLICATION_TABLE_ID)
    complication = complication_for_roll(result.total, scale)
    roll_range = complication_roll_range(result.total, scale)

    get_run_log().log_table_lookup(
        table_id=COMPLICATION_TABLE_ID,
        table_name=f"Complication ({scale.value})",
        roll_total=result.total,
        result_text=complication.name if complication else "No complication",
        context={"scale": scale.value, "roll_range": roll_range, "round": round_number},
    )

    if complication is None:
        logger.info(f"No complication (rolled {result.total})")
        return None

    logger.info(f"COMPLICATION! {complication.name} (rolled {result.total}, {roll_range})")
    return ActiveComplication(
        complication=complication,
        roll=result.total,
        roll_range=roll_range,
        scale=scale,
        round_number=round_number,
        checks={v.id: VehicleCheck(vehicle_id=v.id) for v in vehicles},
    )


def resolve_vehicle_check(
    active: ActiveComplication,
    vehicle: Vehicle,
    modifier: int = 0,
    check_total: Optional[int] = None,
) -> VehicleCheck:
    """
    Settle one vehicle against an active complication.

    When the complication offers a check, check_total is used if given,
    otherwise the check is rolled as d20 + modifier. A slowing complication
    adds its SpeedModifier to the vehicle for the round after the one it
    came up in.
    """
    complication = active.complication
    skill_check = complication.mechanical_effect.skill_check
    check = active.checks.setdefault(vehicle.id, VehicleCheck(vehicle_id=vehicle.id))

    if skill_check is None or skill_check.dc <= 0:
        check.status = ComplicationCheckStatus.UNCONTESTED
    else:
        if check_total is None:
            check_total = DiceRoller.roll_d20(
                f"{skill_check.skill} check for {vehicle.name} vs {complication.name}",
                modifier=modifier,
            ).total
        check.total = check_total
        passed = check_total >= skill_check.dc
        check.status = ComplicationCheckStatus.PASSED if passed else ComplicationCheckStatus.FAILED

    if check.status != ComplicationCheckStatus.PASSED and slows_vehicle(complication):
        check.speed_modifier = speed_modifier_for(complication, active.round_number + 1)
        vehicle.speed_modifiers.append(check.speed_modifier)
        logger.info(
            f"{vehicle.name} slowed by {complication.name} "
            f"(x{check.speed_modifier.multiplier} next round)"
        )

    get_run_log().log_custom(
        "complication_check",
        {
            "vehicle_id": vehicle.id,
            "complication": complication.name,
            "status": check.status.value,
            "total": check.total,
            "dc": skill_check.dc if skill_check else None,
            "slowed": check.speed_modifier is not None,
        },
    )
    return check


def skip_vehicle_check(active: ActiveComplication, vehicle_id: str) -> VehicleCheck:
    """GM waives the complication for one vehicle."""
    check = active.checks.setdefault(vehicle_id, VehicleCheck(vehicle_id=vehicle_id))
    check.status = ComplicationCheckStatus.SKIPPED
    return check
