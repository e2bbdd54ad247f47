"""
Scale Resolver - combat scale tiers for dynamic-distance chases.

Combat runs at different scales depending on how far apart the two sides
are. Long pursuits measured in miles resolve in ten-minute rounds; once the
machines close in, rounds shrink to standard six seconds and movement per
point of speed drops accordingly.

The engagement distance is the minimum distance between any two opposing
combatants that can still act, so a single close pair binds the whole
encounter to the close scale.
"""

from dataclasses import dataclass, field
import logging
import math
from typing import Iterable, Optional, Sequence

from infernal_chase.data_models import (
    Creature,
    EncounterPhase,
    Faction,
    Position,
    ScaleName,
    Vehicle,
)
from infernal_chase.geometry import distance
from infernal_chase.observability.run_log import get_run_log

logger = logging.getLogger(__name__)

MILE_IN_FEET = 5280


@dataclass(frozen=True)
class ScaleTier:
    """One combat scale. Applies to distances in [min_distance, distance_threshold)."""

    name: ScaleName
    display_name: str
    min_distance: float
    distance_threshold: float
    speed_multiplier: int
    round_duration: int  # seconds
    round_duration_display: str
    movement_unit: int
    available_actions: tuple[str, ...] = field(default_factory=tuple)


# =============================================================================
# SCALE TABLE
# =============================================================================

POINT_BLANK = ScaleTier(
    name=ScaleName.POINT_BLANK,
    display_name="Point-Blank",
    min_distance=0,
    distance_threshold=100,
    speed_multiplier=1,
    round_duration=6,
    round_duration_display="6 seconds",
    movement_unit=5,
    available_actions=("all", "board", "ram", "jump", "melee", "grapple"),
)

TACTICAL = ScaleTier(
    name=ScaleName.TACTICAL,
    display_name="Tactical",
    min_distance=100,
    distance_threshold=1000,
    speed_multiplier=3,
    round_duration=6,
    round_duration_display="6 seconds",
    movement_unit=5,
    available_actions=("all",),
)

APPROACH = ScaleTier(
    name=ScaleName.APPROACH,
    display_name="Approach",
    min_distance=1000,
    distance_threshold=MILE_IN_FEET,
    speed_multiplier=10,
    round_duration=60,
    round_duration_display="1 minute",
    movement_unit=100,
    # ranged attacks at this scale are made at disadvantage
    available_actions=("drive", "dash", "maneuver", "ready", "ranged_attack", "signal"),
)

STRATEGIC = ScaleTier(
    name=ScaleName.STRATEGIC,
    display_name="Strategic",
    min_distance=MILE_IN_FEET,
    distance_threshold=math.inf,
    speed_multiplier=100,
    round_duration=600,
    round_duration_display="10 minutes",
    movement_unit=MILE_IN_FEET,
    available_actions=("navigate", "spot", "hide", "signal", "change_course", "forced_march"),
)

# Ordered closest to farthest; thresholds ascend and partition [0, inf)
SCALE_TIERS: tuple[ScaleTier, ...] = (POINT_BLANK, TACTICAL, APPROACH, STRATEGIC)


def tiers_in_order(tiers: Sequence[ScaleTier] = SCALE_TIERS) -> list[ScaleName]:
    return [tier.name for tier in tiers]


def get_tier(name, tiers: Sequence[ScaleTier] = SCALE_TIERS) -> ScaleTier:
    """
    Look up a tier by name.

    Raises:
        ValueError: If no tier has that name
    """
    scale_name = ScaleName(name)
    for tier in tiers:
        if tier.name == scale_name:
            return tier
    raise ValueError(f"Unknown scale tier: {name}")


def tier_index(tier: ScaleTier, tiers: Sequence[ScaleTier] = SCALE_TIERS) -> int:
    """Position of a tier in the closest-to-farthest ordering."""
    for index, candidate in enumerate(tiers):
        if candidate.name == tier.name:
            return index
    raise ValueError(f"Unknown scale tier: {tier.name}")


def tier_for_distance(distance_ft: float, tiers: Sequence[ScaleTier] = SCALE_TIERS) -> ScaleTier:
    """
    Closest tier whose threshold exceeds the distance.

    A distance exactly on a threshold belongs to the next tier out
    (100 ft is tactical). Negative or NaN distances count as 0.
    """
    if distance_ft != distance_ft or distance_ft < 0:
        distance_ft = 0
    for tier in tiers:
        if tier.distance_threshold > distance_ft:
            return tier
    return tiers[-1]


def movement_allowance(speed: float, tier: ScaleTier) -> float:
    """Feet of movement per round at this scale."""
    return max(0, speed) * tier.speed_multiplier


def closing_speed(pursuer_speed: float, quarry_speed: float, tier: ScaleTier) -> float:
    """Feet per round the gap shrinks by. Negative means the quarry is pulling away."""
    return (pursuer_speed - quarry_speed) * tier.speed_multiplier


def new_distance(
    current_distance: float,
    pursuer_speed: float,
    quarry_speed: float,
    tier: ScaleTier,
) -> float:
    """Gap after one round of pursuit, never below zero."""
    return max(0, current_distance - closing_speed(pursuer_speed, quarry_speed, tier))


def format_distance(distance_ft: float) -> str:
    if not math.isfinite(distance_ft):
        return "unknown distance"
    if distance_ft >= MILE_IN_FEET:
        return f"{distance_ft / MILE_IN_FEET:.1f} miles"
    return f"{round(distance_ft)} ft"


def is_action_available(action: str, tier: ScaleTier) -> bool:
    return "all" in tier.available_actions or action in tier.available_actions


def scale_thresholds(tiers: Sequence[ScaleTier] = SCALE_TIERS) -> list[dict]:
    """Lower bound of each tier, for display."""
    return [{"scale": tier.name.value, "threshold": tier.min_distance} for tier in tiers]


# =============================================================================
# ENGAGEMENT DISTANCE
# =============================================================================


def _combatant_positions(
    vehicles: Iterable[Vehicle],
    creatures: Iterable[Creature],
) -> list[tuple[Faction, Position]]:
    combatants: list[tuple[Faction, Position]] = []
    for vehicle in vehicles:
        if vehicle.is_active():
            combatants.append((vehicle.faction, vehicle.position))
    for creature in creatures:
        # Crew ride with their vehicle and are covered by its position
        if creature.is_active() and creature.is_on_battlefield():
            combatants.append((creature.faction, creature.position))
    return combatants


def engagement_distance(
    vehicles: Iterable[Vehicle],
    creatures: Iterable[Creature] = (),
) -> float:
    """
    Minimum distance between any two opposing active combatants.

    Returns math.inf when no opposing pair exists.
    """
    combatants = _combatant_positions(vehicles, creatures)
    party = [pos for faction, pos in combatants if faction == Faction.PARTY]
    enemies = [pos for faction, pos in combatants if faction == Faction.ENEMY]

    closest = math.inf
    for a in party:
        for b in enemies:
            closest = min(closest, distance(a, b))
    return closest


def suggest_tier(
    vehicles: Iterable[Vehicle],
    creatures: Iterable[Creature] = (),
    tiers: Sequence[ScaleTier] = SCALE_TIERS,
) -> Optional[ScaleTier]:
    """Tier for the current engagement distance, or None if it is zero or unbounded."""
    closest = engagement_distance(vehicles, creatures)
    if closest <= 0 or math.isinf(closest):
        return None
    return tier_for_distance(closest, tiers)


# =============================================================================
# SCALE RESOLVER
# =============================================================================


class ScaleResolver:
    """
    Holds the encounter's current scale tier and applies the auto-tier policy.

    During setup the suggested tier always wins. During combat the tier only
    ratchets toward closer scales automatically; widening the scale needs an
    explicit select_tier() call.
    """

    def __init__(
        self,
        initial: ScaleName = ScaleName.TACTICAL,
        tiers: Sequence[ScaleTier] = SCALE_TIERS,
    ):
        self._tiers = tuple(tiers)
        self._current = get_tier(initial, self._tiers)

    @property
    def current_tier(self) -> ScaleTier:
        return self._current

    @property
    def tiers(self) -> tuple[ScaleTier, ...]:
        return self._tiers

    def tier_for_distance(self, distance_ft: float) -> ScaleTier:
        return tier_for_distance(distance_ft, self._tiers)

    def select_tier(self, name) -> ScaleTier:
        """Manual selection; any tier is allowed."""
        tier = get_tier(name, self._tiers)
        self._set_tier(tier, trigger="manual_select")
        return tier

    def auto_update(self, distance_ft: float, phase: EncounterPhase) -> Optional[ScaleTier]:
        """
        Apply the auto-tier policy for a freshly measured engagement distance.

        Returns:
            The new tier if it changed, otherwise None
        """
        if distance_ft <= 0 or math.isinf(distance_ft) or distance_ft != distance_ft:
            return None

        suggested = tier_for_distance(distance_ft, self._tiers)
        if suggested.name == self._current.name:
            return None

        if phase == EncounterPhase.SETUP:
            self._set_tier(suggested, trigger="auto_setup", distance_ft=distance_ft)
            return suggested

        if phase == EncounterPhase.COMBAT:
            if tier_index(suggested, self._tiers) < tier_index(self._current, self._tiers):
                self._set_tier(suggested, trigger="auto_close", distance_ft=distance_ft)
                return suggested
            logger.debug(
                f"Engagement at {format_distance(distance_ft)} suggests {suggested.name.value}; "
                f"holding {self._current.name.value} (no automatic widening in combat)"
            )

        return None

    def _set_tier(self, tier: ScaleTier, trigger: str, distance_ft: Optional[float] = None) -> None:
        old = self._current
        if old.name == tier.name:
            return
        self._current = tier
        context = {"scale_change": True}
        if distance_ft is not None:
            context["distance"] = distance_ft
        logger.info(
            f"Scale changed {old.display_name} -> {tier.display_name} ({trigger})"
        )
        get_run_log().log_transition(
            from_state=old.name.value,
            to_state=tier.name.value,
            trigger=trigger,
            context=context,
        )
