"""
Movement Ledger - per-round movement budgets with undo.

One ledger belongs to one encounter. It records how many feet each entity
has moved this round and keeps a single undo stack shared by every entity.
Both are wiped when the round counter changes.

The ledger never writes positions itself; it returns the position the
caller should commit and remembers the previous one for undo.
"""

from dataclasses import dataclass, field
import logging
from typing import Optional

from infernal_chase.data_models import (
    Bounds,
    EncounterPhase,
    EntityKind,
    MovableEntity,
    Position,
    Vehicle,
)
from infernal_chase.geometry import (
    clamp_position,
    distance,
    finite_delta,
    project_onto_facing,
    scale_vector,
    vector_length,
)
from infernal_chase.scale.scale_resolver import ScaleTier, format_distance, movement_allowance

logger = logging.getLogger(__name__)

LOCKED_STEERING = "Locked Steering"
NO_MOVEMENT_REMAINING = "no movement remaining"
DEFAULT_WALK_SPEED = 30


@dataclass
class MoveHistoryEntry:
    """One accepted move, kept so it can be undone."""
    entity_kind: EntityKind
    entity_id: str
    ledger_key: str
    previous_position: Position
    feet_moved: float


@dataclass
class MoveResult:
    """Outcome of a movement request."""
    accepted_delta: tuple[float, float]
    new_position: Position
    feet_moved: float
    rejected: bool = False
    reason: Optional[str] = None
    locked_steering: bool = False
    remaining: Optional[float] = None

    @property
    def accepted(self) -> bool:
        return not self.rejected


@dataclass
class MovementLedger:
    """
    Movement bookkeeping for one encounter.

    Attributes:
        round_number: Last round seen by sync_round()
        usage: Feet moved this round, keyed by entity ledger key
        history: Undo stack, most recent move last
    """

    round_number: Optional[int] = None
    default_walk_speed: int = DEFAULT_WALK_SPEED
    usage: dict[str, float] = field(default_factory=dict)
    history: list[MoveHistoryEntry] = field(default_factory=list)

    # =========================================================================
    # ROUND LIFECYCLE
    # =========================================================================

    def sync_round(self, round_number: int) -> bool:
        """
        Tell the ledger which round it is.

        Returns:
            True if the round changed and the ledger was reset
        """
        if round_number == self.round_number:
            return False
        old_round = self.round_number
        self.round_number = round_number
        self.reset()
        logger.debug(f"Movement ledger reset for round {round_number} (was {old_round})")
        return True

    def reset(self) -> None:
        """Clear usage and undo history."""
        self.usage.clear()
        self.history.clear()

    # =========================================================================
    # QUERIES
    # =========================================================================

    def used(self, entity: MovableEntity) -> float:
        return self.usage.get(entity.ledger_key, 0.0)

    def speed_for(self, entity: MovableEntity) -> int:
        """Effective speed, clamped to zero."""
        if entity.kind == EntityKind.CREATURE:
            return max(0, entity.effective_speed(self.default_walk_speed))
        return max(0, entity.effective_speed())

    def allowance(self, entity: MovableEntity, tier: ScaleTier) -> float:
        return movement_allowance(self.speed_for(entity), tier)

    def remaining_movement(self, entity: MovableEntity, tier: ScaleTier) -> float:
        return max(0.0, self.allowance(entity, tier) - self.used(entity))

    def can_undo(self) -> bool:
        return bool(self.history)

    # =========================================================================
    # MOVEMENT
    # =========================================================================

    def request_move(
        self,
        entity: MovableEntity,
        dx: float,
        dy: float,
        tier: ScaleTier,
        phase: EncounterPhase,
        bounds: Optional[Bounds] = None,
    ) -> MoveResult:
        """
        Constrain a requested displacement and record it if accepted.

        Setup moves are free and only bounded by the map. Combat moves are
        capped at the entity's remaining allowance for the round; a request
        with nothing left is rejected with no displacement.

        Args:
            entity: Vehicle or creature being moved
            dx, dy: Requested displacement in feet
            tier: Current scale tier
            phase: Current encounter phase
            bounds: Optional world rectangle to clamp into

        Returns:
            MoveResult; new_position is what the caller should commit
        """
        current = entity.position if entity.position is not None else Position()
        locked = False
        # Non-finite components move nothing along that axis
        dx, dy = finite_delta(dx, dy)

        if isinstance(entity, Vehicle) and entity.has_active_mishap(LOCKED_STEERING):
            dx, dy = finite_delta(*project_onto_facing(dx, dy, entity.facing))
            locked = True
            logger.debug(
                f"{entity.name} has locked steering; movement projected onto facing {entity.facing}"
            )

        requested = vector_length(dx, dy)
        if requested == 0:
            return MoveResult(
                accepted_delta=(0.0, 0.0),
                new_position=current.copy(),
                feet_moved=0.0,
                locked_steering=locked,
            )

        if phase == EncounterPhase.SETUP:
            new_position = clamp_position(Position(current.x + dx, current.y + dy), bounds)
            # Setup placement is free; it is undoable but never charged
            self.history.append(
                MoveHistoryEntry(
                    entity_kind=entity.kind,
                    entity_id=entity.id,
                    ledger_key=entity.ledger_key,
                    previous_position=current.copy(),
                    feet_moved=0.0,
                )
            )
            return MoveResult(
                accepted_delta=(new_position.x - current.x, new_position.y - current.y),
                new_position=new_position,
                feet_moved=distance(current, new_position),
                locked_steering=locked,
            )

        remaining = self.remaining_movement(entity, tier)
        if remaining <= 0:
            logger.info(f"{entity.name} has no movement remaining this round")
            return MoveResult(
                accepted_delta=(0.0, 0.0),
                new_position=current.copy(),
                feet_moved=0.0,
                rejected=True,
                reason=NO_MOVEMENT_REMAINING,
                locked_steering=locked,
                remaining=0.0,
            )

        feet_moved = requested
        if requested > remaining:
            dx, dy = scale_vector(dx, dy, remaining)
            feet_moved = remaining

        new_position = clamp_position(Position(current.x + dx, current.y + dy), bounds)

        self.history.append(
            MoveHistoryEntry(
                entity_kind=entity.kind,
                entity_id=entity.id,
                ledger_key=entity.ledger_key,
                previous_position=current.copy(),
                feet_moved=feet_moved,
            )
        )
        self.usage[entity.ledger_key] = self.used(entity) + feet_moved

        left = max(0.0, remaining - feet_moved)
        logger.info(
            f"{entity.name} moved {format_distance(feet_moved)} ({format_distance(left)} remaining)"
        )
        return MoveResult(
            accepted_delta=(new_position.x - current.x, new_position.y - current.y),
            new_position=new_position,
            feet_moved=feet_moved,
            locked_steering=locked,
            remaining=left,
        )

    def undo(self) -> Optional[MoveHistoryEntry]:
        """
        Pop the most recent move of any entity and refund its feet.

        Returns:
            The popped entry (the caller restores previous_position),
            or None if there is nothing to undo
        """
        if not self.history:
            return None
        entry = self.history.pop()
        if entry.feet_moved:
            used = self.usage.get(entry.ledger_key, 0.0)
            self.usage[entry.ledger_key] = max(0.0, used - entry.feet_moved)
        return entry
