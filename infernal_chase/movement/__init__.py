"""Per-round movement budgets and undo."""

from infernal_chase.movement.movement_ledger import (
    MovementLedger,
    MoveHistoryEntry,
    MoveResult,
    LOCKED_STEERING,
    NO_MOVEMENT_REMAINING,
    DEFAULT_WALK_SPEED,
)

__all__ = [
    "MovementLedger",
    "MoveHistoryEntry",
    "MoveResult",
    "LOCKED_STEERING",
    "NO_MOVEMENT_REMAINING",
    "DEFAULT_WALK_SPEED",
]
