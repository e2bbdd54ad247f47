"""
Elevation Resolver - high ground modifiers.

Elevation only ever changes attack and range numbers:
- +2 to hit from at least 10 ft above the target, -2 from 10 ft below
- ranged weapons fired downward gain 10% range per full 10 ft of height

Elevation never changes the cover category of a target.
"""

from dataclasses import dataclass
import math
import re
from typing import Iterable, Optional, Union

from infernal_chase.data_models import CoverType, ElevationZone, Position

HIGH_GROUND_STEP = 10
HIGH_GROUND_ATTACK_BONUS = 2
RANGE_BONUS_PER_STEP = 0.1


def elevation_at(position: Position, zones: Iterable[ElevationZone]) -> int:
    """
    Elevation of a point: the highest containing zone, or 0.

    Overlapping zones are not merged; standing where two overlap puts you
    on top of the higher one.
    """
    highest = 0
    for zone in zones:
        if zone.contains(position) and zone.elevation > highest:
            highest = zone.elevation
    return highest


def elevation_difference(attacker_elevation: int, target_elevation: int) -> int:
    """Positive when the attacker is above the target."""
    return attacker_elevation - target_elevation


def attack_modifier(elevation_diff: int) -> int:
    if elevation_diff >= HIGH_GROUND_STEP:
        return HIGH_GROUND_ATTACK_BONUS
    if elevation_diff <= -HIGH_GROUND_STEP:
        return -HIGH_GROUND_ATTACK_BONUS
    return 0


def extended_range(base_range: int, elevation_diff: int) -> int:
    """
    Weapon range when firing downward.

    Melee (base range 0) and level or upward shots are unchanged.
    """
    if base_range == 0 or elevation_diff <= 0:
        return base_range
    steps = math.floor(elevation_diff / HIGH_GROUND_STEP)
    return base_range + math.floor(base_range * RANGE_BONUS_PER_STEP * steps)


_RANGE_PATTERN = re.compile(r"(\d+)\s*ft")
_LEADING_NUMBER = re.compile(r"(\d+)")


def parse_weapon_range(range_text: Optional[str]) -> int:
    """
    Short range in feet from a weapon's range text.

    "120 ft" -> 120, "80/320 ft" -> 80, "melee (5 ft)" -> 0, unknown -> 0.
    """
    if not range_text:
        return 0
    normalized = range_text.lower().strip()
    if "melee" in normalized:
        return 0
    if "/" in normalized:
        match = _LEADING_NUMBER.search(normalized.split("/")[0])
        return int(match.group(1)) if match else 0
    match = _RANGE_PATTERN.search(normalized)
    return int(match.group(1)) if match else 0


def format_range_extension(base_range: int, modified_range: int) -> Optional[str]:
    if base_range == 0 or modified_range <= base_range:
        return None
    return f"Range +{modified_range - base_range} ft ({modified_range} ft total, high ground)"


def format_elevation_diff(elevation_diff: int) -> str:
    """Describe the height gap from the attacker's point of view."""
    if elevation_diff > 0:
        return f"Target {elevation_diff} ft lower"
    if elevation_diff < 0:
        return f"Target {abs(elevation_diff)} ft higher"
    return "Same elevation"


def format_attack_modifier(modifier: int) -> str:
    if modifier > 0:
        return f"+{modifier} (you have high ground)"
    if modifier < 0:
        return f"{modifier} (target has high ground)"
    return ""


@dataclass
class ElevationEffects:
    """Attack and range numbers for one attacker/target pair."""
    attack_modifier: int
    extended_range: int


@dataclass
class ElevationCombatInfo:
    """Full elevation breakdown for display alongside an attack."""
    attacker_elevation: int
    target_elevation: int
    elevation_diff: int
    attack_modifier: int
    base_range: int
    modified_range: int
    range_extension_text: Optional[str]
    base_cover: CoverType
    effective_cover: CoverType


def elevation_effects(
    attacker_pos: Position,
    target_pos: Position,
    zones: Iterable[ElevationZone],
    weapon_range: Union[int, str, None],
) -> ElevationEffects:
    """Attack modifier and extended range between two map positions."""
    zones = list(zones)
    diff = elevation_difference(
        elevation_at(attacker_pos, zones),
        elevation_at(target_pos, zones),
    )
    base_range = _base_range(weapon_range)
    return ElevationEffects(
        attack_modifier=attack_modifier(diff),
        extended_range=extended_range(base_range, diff),
    )


def elevation_combat_info(
    attacker_elevation: int,
    target_elevation: int,
    weapon_range: Union[int, str, None],
    base_cover: CoverType = CoverType.NONE,
) -> ElevationCombatInfo:
    diff = elevation_difference(attacker_elevation, target_elevation)
    base_range = _base_range(weapon_range)
    modified = extended_range(base_range, diff)
    return ElevationCombatInfo(
        attacker_elevation=attacker_elevation,
        target_elevation=target_elevation,
        elevation_diff=diff,
        attack_modifier=attack_modifier(diff),
        base_range=base_range,
        modified_range=modified,
        range_extension_text=format_range_extension(base_range, modified),
        base_cover=base_cover,
        # elevation never upgrades cover
        effective_cover=base_cover,
    )


def _base_range(weapon_range: Union[int, str, None]) -> int:
    if isinstance(weapon_range, str) or weapon_range is None:
        return parse_weapon_range(weapon_range)
    return max(0, int(weapon_range))
