"""
Shared data structures for the Infernal Chase tactical engine.

The engine never owns these records. Callers hand in snapshots of vehicles,
creatures and zones; the resolvers read them and the engine facade writes
back the few fields it is responsible for (position and active mishaps).
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Union
import math
import random
import uuid

from infernal_chase.observability.run_log import get_run_log


# =============================================================================
# ENUMS
# =============================================================================


class ScaleName(str, Enum):
    """Combat scale tiers, ordered from closest to farthest."""
    POINT_BLANK = "point_blank"
    TACTICAL = "tactical"
    APPROACH = "approach"
    STRATEGIC = "strategic"


class EncounterPhase(str, Enum):
    """Encounter phase as reported by the turn tracker."""
    SETUP = "setup"
    COMBAT = "combat"
    ENDED = "ended"


class EntityKind(str, Enum):
    """Discriminator for movable entities."""
    VEHICLE = "vehicle"
    CREATURE = "creature"


class Faction(str, Enum):
    """Which side of the chase an entity fights on."""
    PARTY = "party"
    ENEMY = "enemy"


class CoverType(str, Enum):
    """Cover categories granted by a vehicle station."""
    NONE = "none"
    HALF = "half"
    THREE_QUARTERS = "three_quarters"
    FULL = "full"


class AttackArc(str, Enum):
    """Quadrant of a vehicle an attack arrives from."""
    FRONT = "front"
    RIGHT = "right"
    REAR = "rear"
    LEFT = "left"


class MishapDuration(str, Enum):
    """How long a mishap lasts once applied."""
    INSTANT = "instant"
    ROUNDS = "rounds"
    UNTIL_REPAIRED = "until_repaired"


class RepairAbility(str, Enum):
    """Ability used for a repair check."""
    STR = "str"
    DEX = "dex"


class MishapSeverity(str, Enum):
    """Severity band of a mishap roll."""
    MINOR = "minor"
    MODERATE = "moderate"
    SEVERE = "severe"
    CATASTROPHIC = "catastrophic"


class SpeedModifierDuration(str, Enum):
    """Lifetime of a temporary speed modifier."""
    THIS_TURN = "this_turn"
    THIS_ROUND = "this_round"
    UNTIL_CLEARED = "until_cleared"


class ComplicationCheckStatus(str, Enum):
    """Where one vehicle stands against the current complication."""
    PENDING = "pending"
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"  # GM waved it off
    UNCONTESTED = "uncontested"  # no check offered; the effect just happens


# =============================================================================
# DICE AND RANDOMIZATION
# =============================================================================


class DiceRoller:
    """
    Centralized randomization interface.
    All dice rolls must go through this class for reproducibility and logging.

    Rolls are described structurally (number of dice, die size, modifier);
    the notation string is only built for display and logging.
    """

    _instance = None
    _seed: Optional[int] = None
    _roll_log: list = []
    _replay_session = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    def set_seed(cls, seed: int) -> None:
        """Set random seed for reproducibility."""
        cls._seed = seed
        random.seed(seed)
        get_run_log().set_seed(seed)

    @classmethod
    def get_seed(cls) -> Optional[int]:
        """Get the current seed, if one was set."""
        return cls._seed

    @classmethod
    def set_replay_session(cls, session) -> None:
        """
        Attach a ReplaySession (or None to detach).

        While the session is replaying, recorded results are returned in
        order instead of fresh random numbers.
        """
        cls._replay_session = session

    @classmethod
    def is_replaying(cls) -> bool:
        return cls._replay_session is not None and cls._replay_session.is_replaying()

    @staticmethod
    def format_notation(num_dice: int, die_size: int, modifier: int = 0) -> str:
        """Build a display notation such as '1d20' or '3d6+2'."""
        notation = f"{num_dice}d{die_size}"
        if modifier > 0:
            notation += f"+{modifier}"
        elif modifier < 0:
            notation += f"-{abs(modifier)}"
        return notation

    @classmethod
    def _next_replayed_roll(cls, notation: str, table_id: str):
        if not cls.is_replaying():
            return None
        return cls._replay_session.next_roll(notation, table_id)

    @classmethod
    def roll(
        cls,
        num_dice: int,
        die_size: int,
        modifier: int = 0,
        reason: str = "",
        table_id: str = "",
    ) -> "DiceResult":
        """
        Roll dice.

        Args:
            num_dice: How many dice to roll
            die_size: Sides per die
            modifier: Flat modifier added to the sum
            reason: Why this roll is being made (for logging)
            table_id: Table the result is looked up on, if any

        Returns:
            DiceResult with individual rolls and total
        """
        num_dice = max(1, num_dice)
        die_size = max(1, die_size)
        notation = cls.format_notation(num_dice, die_size, modifier)

        recorded = cls._next_replayed_roll(notation, table_id)
        if recorded is not None:
            total = recorded.total
            rolls = list(recorded.rolls) or [total - modifier]
        else:
            rolls = [random.randint(1, die_size) for _ in range(num_dice)]
            total = sum(rolls) + modifier

        result = DiceResult(
            notation=notation,
            rolls=rolls,
            modifier=modifier,
            total=total,
            reason=reason,
        )

        cls._roll_log.append(result)
        get_run_log().log_roll(
            notation=notation,
            rolls=rolls,
            modifier=modifier,
            total=total,
            reason=reason,
            table_id=table_id,
        )
        return result

    @classmethod
    def roll_d20(cls, reason: str = "", table_id: str = "", modifier: int = 0) -> "DiceResult":
        """Convenience method for d20 rolls."""
        return cls.roll(1, 20, modifier, reason, table_id)

    @classmethod
    def roll_d6(cls, num_dice: int = 1, reason: str = "") -> "DiceResult":
        """Convenience method for d6 rolls."""
        return cls.roll(num_dice, 6, 0, reason)

    @classmethod
    def randint(cls, a: int, b: int, reason: str = "") -> int:
        """Return an integer in [a, b] through the logged dice path."""
        if b < a:
            a, b = b, a
        result = cls.roll(1, b - a + 1, a - 1, reason)
        return result.total

    @classmethod
    def get_roll_log(cls) -> list:
        """Get the complete roll log for the session."""
        return cls._roll_log.copy()

    @classmethod
    def clear_roll_log(cls) -> None:
        """Clear the roll log."""
        cls._roll_log = []


@dataclass
class DiceResult:
    """Result of a dice roll with full information."""
    notation: str
    rolls: list[int]
    modifier: int
    total: int
    reason: str
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        if self.modifier > 0:
            return f"{self.notation}: {self.rolls} + {self.modifier} = {self.total}"
        elif self.modifier < 0:
            return f"{self.notation}: {self.rolls} - {abs(self.modifier)} = {self.total}"
        return f"{self.notation}: {self.rolls} = {self.total}"


# =============================================================================
# SPATIAL
# =============================================================================


@dataclass
class Position:
    """World position in feet. Y grows downward (north is -y)."""
    x: float = 0.0
    y: float = 0.0

    def copy(self) -> "Position":
        return Position(self.x, self.y)

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass
class Size:
    """Width and height in feet."""
    width: float
    height: float


@dataclass
class ElevationZone:
    """Axis-aligned raised area. Overlapping zones are never merged."""
    position: Position
    size: Size
    elevation: int
    id: str = ""
    name: str = ""

    def contains(self, point: Position) -> bool:
        """Inclusive on every edge."""
        return (
            self.position.x <= point.x <= self.position.x + self.size.width
            and self.position.y <= point.y <= self.position.y + self.size.height
        )


@dataclass
class BackgroundImage:
    """Battlefield background image placement."""
    natural_width: float
    natural_height: float
    feet_per_pixel: float = 1.0
    scale: float = 1.0
    position: Position = field(default_factory=Position)


@dataclass
class Bounds:
    """World rectangle that positions are clamped into."""
    min_x: float
    max_x: float
    min_y: float
    max_y: float

    @classmethod
    def from_background_image(cls, image: BackgroundImage) -> Optional["Bounds"]:
        """
        Derive bounds from a background image centred on its position.

        Returns None when the image has no usable dimensions.
        """
        if not image.natural_width or not image.natural_height:
            return None
        feet_per_pixel = image.feet_per_pixel or 1.0
        scale = image.scale or 1.0
        width = image.natural_width * feet_per_pixel * scale
        height = image.natural_height * feet_per_pixel * scale
        return cls(
            min_x=image.position.x - width / 2,
            max_x=image.position.x + width / 2,
            min_y=image.position.y - height / 2,
            max_y=image.position.y + height / 2,
        )


# =============================================================================
# VEHICLES
# =============================================================================


@dataclass
class VehicleZone:
    """A crew station on a vehicle."""
    id: str
    name: str
    cover: CoverType = CoverType.NONE
    capacity: int = 1
    can_attack_out: bool = True
    visible_from_arcs: list[AttackArc] = field(
        default_factory=lambda: [AttackArc.FRONT, AttackArc.RIGHT, AttackArc.REAR, AttackArc.LEFT]
    )
    description: str = ""


@dataclass
class WeaponTemplate:
    """A mounted weapon."""
    id: str
    name: str
    damage: str = ""
    attack_bonus: Optional[int] = None
    range: Optional[str] = None
    zone_id: Optional[str] = None


@dataclass
class VehicleTemplate:
    """Static stats shared by every vehicle of one model."""
    id: str
    name: str
    max_hp: int
    ac: int
    speed: int
    damage_threshold: int
    mishap_threshold: int
    zones: list[VehicleZone] = field(default_factory=list)
    weapons: list[WeaponTemplate] = field(default_factory=list)

    def get_zone(self, zone_id: str) -> Optional[VehicleZone]:
        for zone in self.zones:
            if zone.id == zone_id:
                return zone
        return None


@dataclass
class CrewSave:
    """Saving throw forced on the crew by a mishap."""
    dc: int
    damage: str


@dataclass
class MishapEffect:
    """Mechanical consequences of a mishap."""
    speed_reduction: int = 0
    damage_threshold_reduction: int = 0
    auto_fail_dex_checks: bool = False
    disadvantage_on_all_checks: bool = False
    disable_weapons: list[str] = field(default_factory=list)
    recurring_damage: Optional[str] = None
    zone_obscured: Optional[str] = None
    vehicle_prone: bool = False
    crew_save_on_flip: Optional[CrewSave] = None


@dataclass
class Mishap:
    """A mishap table entry, or an active copy of one on a vehicle."""
    id: str
    roll_min: int
    roll_max: int
    name: str
    effect: str
    duration: MishapDuration = MishapDuration.UNTIL_REPAIRED
    rounds_remaining: Optional[int] = None
    repair_dc: Optional[int] = None
    repair_ability: Optional[RepairAbility] = None
    stackable: bool = False
    mechanical_effect: MishapEffect = field(default_factory=MishapEffect)


# =============================================================================
# CHASE COMPLICATIONS
# =============================================================================


@dataclass
class SkillCheck:
    """Check each affected vehicle makes against a complication."""
    skill: str
    dc: int
    failure_effect: str


@dataclass
class ComplicationEffect:
    """Mechanical consequences of a chase complication."""
    target_vehicle: Optional[str] = None  # pursuer, quarry, both, random
    damage: Optional[str] = None
    speed_change: int = 0  # percent, -50 halves speed
    mishap_roll: bool = False
    skill_check: Optional[SkillCheck] = None


@dataclass
class Complication:
    """A chase complication table entry."""
    roll_min: int
    roll_max: int
    name: str
    description: str
    effect: str
    mechanical_effect: ComplicationEffect = field(default_factory=ComplicationEffect)


@dataclass
class SpeedModifier:
    """Temporary multiplier on a vehicle's speed (complications, terrain)."""
    id: str
    source: str
    multiplier: float
    duration: SpeedModifierDuration = SpeedModifierDuration.THIS_ROUND
    applied_at_round: int = 0  # round the modifier is in force for
    applied_at_turn_index: Optional[int] = None

    def is_expired(self, round_number: int, turn_index: Optional[int] = None) -> bool:
        """Round-scoped modifiers lapse once a later round starts; turn-scoped ones after their turn."""
        if self.duration == SpeedModifierDuration.THIS_ROUND:
            return self.applied_at_round < round_number
        if self.duration == SpeedModifierDuration.THIS_TURN:
            if self.applied_at_round < round_number:
                return True
            return (
                turn_index is not None
                and self.applied_at_turn_index is not None
                and self.applied_at_turn_index < turn_index
            )
        return False


@dataclass
class Vehicle:
    """A war machine on the battlefield."""
    id: str
    name: str
    template: VehicleTemplate
    faction: Faction = Faction.PARTY
    current_hp: Optional[int] = None
    current_speed: Optional[int] = None
    position: Position = field(default_factory=Position)
    facing: float = 0.0
    active_mishaps: list[Mishap] = field(default_factory=list)
    speed_modifiers: list[SpeedModifier] = field(default_factory=list)
    is_inoperative: bool = False

    def __post_init__(self):
        if self.current_hp is None:
            self.current_hp = self.template.max_hp
        if self.current_speed is None:
            self.current_speed = self.template.speed

    @property
    def kind(self) -> EntityKind:
        return EntityKind.VEHICLE

    @property
    def ledger_key(self) -> str:
        return self.id

    def has_active_mishap(self, name: str) -> bool:
        return any(m.name == name for m in self.active_mishaps)

    def effective_speed(self) -> int:
        """
        Speed after mishap reductions and speed modifiers.

        Each reduction is floored at zero as it is applied, then every
        multiplier is applied with the result rounded down.
        """
        speed = max(0, self.current_speed or 0)
        for mishap in self.active_mishaps:
            reduction = mishap.mechanical_effect.speed_reduction
            if reduction:
                speed = max(0, speed - reduction)
        for modifier in self.speed_modifiers:
            speed = math.floor(speed * modifier.multiplier)
        return max(0, speed)

    def effective_damage_threshold(self) -> int:
        """Template damage threshold minus Shedding Armor style reductions."""
        reduction = sum(
            m.mechanical_effect.damage_threshold_reduction for m in self.active_mishaps
        )
        return max(0, self.template.damage_threshold - reduction)

    def is_active(self) -> bool:
        """Able to act: operative with hit points left."""
        return not self.is_inoperative and (self.current_hp or 0) > 0


# =============================================================================
# CREATURES
# =============================================================================


@dataclass
class StatBlock:
    """The slice of a creature statblock the engine reads."""
    name: str
    type: str = "npc"
    walk_speed: Optional[int] = None


@dataclass
class Creature:
    """A creature instance, on foot or crewing a vehicle."""
    id: str
    name: str
    statblock: StatBlock
    current_hp: int = 1
    position: Optional[Position] = None
    vehicle_id: Optional[str] = None
    zone_id: Optional[str] = None

    @property
    def kind(self) -> EntityKind:
        return EntityKind.CREATURE

    @property
    def ledger_key(self) -> str:
        return f"creature-{self.id}"

    @property
    def faction(self) -> Faction:
        return Faction.PARTY if self.statblock.type == "pc" else Faction.ENEMY

    def effective_speed(self, default_walk_speed: int = 30) -> int:
        walk = self.statblock.walk_speed
        if walk is None:
            walk = default_walk_speed
        return max(0, walk)

    def is_on_battlefield(self) -> bool:
        """Standing on the map rather than crewing a vehicle."""
        return self.vehicle_id is None and self.position is not None

    def is_active(self) -> bool:
        return self.current_hp > 0


MovableEntity = Union[Vehicle, Creature]


def generate_id(prefix: str) -> str:
    """Short unique id with a readable prefix."""
    return f"{prefix}_{uuid.uuid4().hex[:8]}"
