"""
Arc & Cover Resolver.

Works out which quadrant of a target vehicle an attack arrives from and
what cover the targeted station grants from that direction. Cover is a
fixed property of the station; range and elevation never change it. A
station that cannot be seen from the attack's arc is fully covered and
cannot be targeted at all.
"""

from dataclasses import dataclass
import logging
import math
from typing import Iterable, Optional

from infernal_chase.data_models import (
    AttackArc,
    CoverType,
    Creature,
    Position,
    Vehicle,
    VehicleZone,
)
from infernal_chase.geometry import angle_to, normalize_angle

logger = logging.getLogger(__name__)


COVER_AC_BONUS: dict[CoverType, float] = {
    CoverType.NONE: 0,
    CoverType.HALF: 2,
    CoverType.THREE_QUARTERS: 5,
    CoverType.FULL: math.inf,  # cannot be targeted
}

ARC_DISPLAY_NAMES: dict[AttackArc, str] = {
    AttackArc.FRONT: "Bow",
    AttackArc.RIGHT: "Starboard",
    AttackArc.REAR: "Stern",
    AttackArc.LEFT: "Port",
}

_COVER_TEXT: dict[CoverType, str] = {
    CoverType.NONE: "no cover",
    CoverType.HALF: "half cover (+2 AC)",
    CoverType.THREE_QUARTERS: "three-quarters cover (+5 AC)",
    CoverType.FULL: "full cover (no line of sight)",
}

_ZONE_COVER_DESCRIPTIONS: dict[CoverType, str] = {
    CoverType.NONE: "No cover - fully exposed",
    CoverType.HALF: "Half cover (+2 AC) - body partially shielded by station",
    CoverType.THREE_QUARTERS: "Three-quarters cover (+5 AC) - only head/shoulders visible",
    CoverType.FULL: "Full cover - completely protected from outside attacks",
}


@dataclass
class CoverResult:
    """Cover outcome for one attack against one station."""
    base_cover: CoverType
    effective_cover: CoverType
    ac_bonus: float
    attack_arc: AttackArc
    is_visible: bool
    reason: str


@dataclass
class TargetCover:
    """A crew member that could be targeted, with their cover."""
    creature_id: str
    creature_name: str
    zone_name: str
    cover: CoverResult


def cover_ac_bonus(cover: CoverType) -> float:
    return COVER_AC_BONUS.get(cover, 0)


def cover_from_bonus(bonus: float) -> CoverType:
    """Reverse lookup of cover category from an AC bonus."""
    if bonus == math.inf:
        return CoverType.FULL
    if bonus >= 5:
        return CoverType.THREE_QUARTERS
    if bonus >= 2:
        return CoverType.HALF
    return CoverType.NONE


def format_cover(cover: CoverType) -> str:
    return _COVER_TEXT.get(cover, str(cover))


def zone_cover_description(zone: VehicleZone) -> str:
    return _ZONE_COVER_DESCRIPTIONS.get(zone.cover, str(zone.cover))


def arc_display_name(arc: AttackArc) -> str:
    return ARC_DISPLAY_NAMES[arc]


def attack_arc(attack_angle: float, target_facing: float) -> AttackArc:
    """
    Quadrant of the target the attack arrives from.

    attack_angle is the bearing from attacker to target. The 180 degree
    offset turns it into the bearing from the target back to the attacker,
    relative to the target's facing.
    """
    relative = normalize_angle(attack_angle - target_facing + 180)

    if relative >= 315 or relative < 45:
        return AttackArc.FRONT
    if relative < 135:
        return AttackArc.RIGHT
    if relative < 225:
        return AttackArc.REAR
    return AttackArc.LEFT


def is_zone_visible_from_arc(zone: VehicleZone, arc: AttackArc) -> bool:
    return arc in zone.visible_from_arcs


def cover_from_position(
    attacker_pos: Position,
    target_vehicle: Vehicle,
    target_zone: VehicleZone,
) -> CoverResult:
    """
    Cover for an attack made from a map position (creature on foot or
    another vehicle's position) against a station on target_vehicle.
    """
    arc = attack_arc(angle_to(attacker_pos, target_vehicle.position), target_vehicle.facing)
    base_cover = target_zone.cover

    if not is_zone_visible_from_arc(target_zone, arc):
        return CoverResult(
            base_cover=base_cover,
            effective_cover=CoverType.FULL,
            ac_bonus=math.inf,
            attack_arc=arc,
            is_visible=False,
            reason=(
                f"Target in {target_zone.name} is not visible from the {arc.value} "
                f"(blocked by vehicle structure)"
            ),
        )

    if base_cover == CoverType.NONE:
        reason = (
            f"Target in {target_zone.name} is fully exposed "
            f"(attacking from {arc_display_name(arc)})"
        )
    else:
        reason = (
            f"Target in {target_zone.name} has {format_cover(base_cover)} from station "
            f"(attacking from {arc_display_name(arc)})"
        )

    return CoverResult(
        base_cover=base_cover,
        effective_cover=base_cover,
        ac_bonus=cover_ac_bonus(base_cover),
        attack_arc=arc,
        is_visible=True,
        reason=reason,
    )


def cover_between_vehicles(
    attacker_vehicle: Vehicle,
    target_vehicle: Vehicle,
    target_zone: VehicleZone,
) -> CoverResult:
    return cover_from_position(attacker_vehicle.position, target_vehicle, target_zone)


def same_vehicle_cover(
    attacker_zone: Optional[VehicleZone],
    target_zone: VehicleZone,
) -> CoverResult:
    """
    Cover between two stations on one vehicle.

    No arc is computed; the target station's own cover applies as-is.
    """
    return CoverResult(
        base_cover=target_zone.cover,
        effective_cover=target_zone.cover,
        ac_bonus=cover_ac_bonus(target_zone.cover),
        attack_arc=AttackArc.FRONT,
        is_visible=True,
        reason=f"Same vehicle - target has {format_cover(target_zone.cover)} from {target_zone.name}",
    )


def targets_with_cover(
    attacker_vehicle: Vehicle,
    attacker_zone: Optional[VehicleZone],
    target_vehicle: Vehicle,
    creatures: Iterable[Creature],
) -> list[TargetCover]:
    """
    Every crew member aboard target_vehicle with their cover from the attacker.

    Creatures whose zone is not on the vehicle's template are skipped.
    """
    same_vehicle = attacker_vehicle.id == target_vehicle.id
    targets = []

    for creature in creatures:
        if creature.vehicle_id != target_vehicle.id or creature.zone_id is None:
            continue
        zone = target_vehicle.template.get_zone(creature.zone_id)
        if zone is None:
            logger.debug(f"{creature.name} is assigned to unknown zone {creature.zone_id}")
            continue

        if same_vehicle and attacker_zone is not None:
            cover = same_vehicle_cover(attacker_zone, zone)
        else:
            cover = cover_between_vehicles(attacker_vehicle, target_vehicle, zone)

        targets.append(
            TargetCover(
                creature_id=creature.id,
                creature_name=creature.name,
                zone_name=zone.name,
                cover=cover,
            )
        )

    return targets
