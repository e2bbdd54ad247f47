"""
Replay of recorded dice for deterministic encounter reproduction.

A ReplaySession attached to DiceRoller hands recorded results back in
order. Each recorded roll remembers which table it fed (mishap d20,
complication d20, or none), so when a replayed encounter asks for a
different kind of roll than was recorded at that point the session notes
the drift instead of silently resolving a mishap with a complication roll.
Replay always wins: the recorded result is returned either way.
"""

from dataclasses import dataclass, field
from typing import Any, Optional
import json
import logging

logger = logging.getLogger(__name__)


@dataclass
class RecordedRoll:
    """One roll as it appeared in a run log."""
    notation: str
    rolls: list[int]
    modifier: int
    total: int
    reason: str = ""
    table_id: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RecordedRoll":
        return cls(
            notation=data.get("notation", ""),
            rolls=list(data.get("rolls") or []),
            modifier=data.get("modifier", 0),
            total=data.get("total", 0),
            reason=data.get("reason", ""),
            table_id=data.get("table_id", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "notation": self.notation,
            "rolls": self.rolls,
            "modifier": self.modifier,
            "total": self.total,
            "reason": self.reason,
            "table_id": self.table_id,
        }

    def describe(self) -> str:
        return f"{self.notation or '?'} [{self.table_id or 'no table'}]"


@dataclass
class ReplayDrift:
    """A replayed roll whose notation or table differs from the recording."""
    position: int
    requested: str
    recorded: str


@dataclass
class ReplaySession:
    """
    Recorded rolls fed back to DiceRoller in order.

    Attributes:
        seed: Seed of the recorded run, if known
        rolls: Recorded rolls in the order they were made
        active: While False, DiceRoller ignores the session
        position: Index of the next roll to hand out
        overruns: Requests made after the recording ran out
        drift: Mismatches between requested and recorded rolls
    """

    seed: Optional[int] = None
    rolls: list[RecordedRoll] = field(default_factory=list)
    active: bool = True
    position: int = 0
    overruns: int = 0
    drift: list[ReplayDrift] = field(default_factory=list)

    # =========================================================================
    # CONSTRUCTION
    # =========================================================================

    @classmethod
    def from_totals(
        cls,
        totals: list[int],
        seed: Optional[int] = None,
        table_id: str = "",
    ) -> "ReplaySession":
        """Scripted single-die results; notation is left open so any roll accepts them."""
        rolls = [RecordedRoll(notation="", rolls=[t], modifier=0, total=t, table_id=table_id) for t in totals]
        return cls(seed=seed, rolls=rolls)

    @classmethod
    def from_run_log(cls, log_data: dict[str, Any]) -> "ReplaySession":
        """Take the ROLL events of a RunLog.to_dict() payload, in sequence order."""
        events = sorted(
            (e for e in log_data.get("events", []) if e.get("event_type") == "roll"),
            key=lambda e: e.get("sequence_number", 0),
        )
        return cls(
            seed=log_data.get("seed"),
            rolls=[RecordedRoll.from_dict(e) for e in events],
        )

    @classmethod
    def load(cls, filepath: str) -> "ReplaySession":
        """Load either a saved session or a saved run log."""
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)

        if "rolls" in data:
            return cls(
                seed=data.get("seed"),
                rolls=[RecordedRoll.from_dict(r) for r in data["rolls"]],
            )
        return cls.from_run_log(data)

    def save(self, filepath: str) -> None:
        data = {"seed": self.seed, "rolls": [r.to_dict() for r in self.rolls]}
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        logger.info(f"Replay of {len(self.rolls)} rolls saved to {filepath}")

    # =========================================================================
    # REPLAY
    # =========================================================================

    def is_replaying(self) -> bool:
        return self.active

    def stop(self) -> None:
        self.active = False
        logger.info(f"Replay stopped at roll {self.position}/{len(self.rolls)}")

    def rewind(self) -> None:
        """Start over from the first recorded roll."""
        self.position = 0
        self.overruns = 0
        self.drift = []
        self.active = True

    def next_roll(self, notation: str = "", table_id: str = "") -> Optional[RecordedRoll]:
        """
        Hand out the next recorded roll.

        Args:
            notation: Dice the caller is about to roll, e.g. "1d20"
            table_id: Table the caller will look the result up on

        Returns:
            The recorded roll, or None when inactive or exhausted
        """
        if not self.active:
            return None

        if self.position >= len(self.rolls):
            self.overruns += 1
            logger.warning(f"Replay overrun #{self.overruns}: recording ended at roll {self.position}")
            return None

        recorded = self.rolls[self.position]
        notation_differs = bool(recorded.notation and notation and recorded.notation != notation)
        table_differs = bool(recorded.table_id and recorded.table_id != table_id)
        if notation_differs or table_differs:
            requested = f"{notation or '?'} [{table_id or 'no table'}]"
            self.drift.append(ReplayDrift(self.position, requested, recorded.describe()))
            logger.warning(
                f"Replay drift at roll {self.position}: requested {requested}, "
                f"recording has {recorded.describe()}"
            )

        self.position += 1
        return recorded

    def peek(self) -> Optional[RecordedRoll]:
        if self.position < len(self.rolls):
            return self.rolls[self.position]
        return None

    def remaining(self) -> int:
        return max(0, len(self.rolls) - self.position)

    def rolls_by_table(self) -> dict[str, int]:
        """How many recorded rolls fed each table ("" for untabled rolls)."""
        counts: dict[str, int] = {}
        for roll in self.rolls:
            counts[roll.table_id] = counts.get(roll.table_id, 0) + 1
        return counts

    def __repr__(self) -> str:
        return (
            f"ReplaySession(seed={self.seed}, active={self.active}, "
            f"position={self.position}/{len(self.rolls)}, drift={len(self.drift)})"
        )
