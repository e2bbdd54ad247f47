"""
Run Log for encounter event tracking.

Captures every deterministic event of an encounter (dice rolls, scale and
phase transitions, mishap and complication table lookups, movement and
round resets) so the caller can display, persist or replay them.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Callable
import json
import logging

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Types of events that can be logged."""

    ROLL = "roll"  # Dice roll
    TRANSITION = "transition"  # Phase or scale tier change
    TABLE_LOOKUP = "table_lookup"  # Mishap or complication table result
    MOVEMENT = "movement"  # Accepted, denied or undone move
    ROUND = "round"  # Round boundary reset
    CUSTOM = "custom"  # Custom event


_HEADER_FIELDS = ("event_type", "timestamp", "sequence_number", "round_number", "context")


@dataclass
class LogEvent:
    """
    Base class for all logged events.

    Subclasses add payload fields and pin event_type in __post_init__;
    serialization covers the header plus whatever payload fields exist.
    """

    event_type: EventType = EventType.CUSTOM
    timestamp: datetime = field(default_factory=datetime.now)
    sequence_number: int = 0
    round_number: Optional[int] = None
    context: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def _payload_fields(cls) -> list[str]:
        return [f.name for f in fields(cls) if f.name not in _HEADER_FIELDS]

    def to_dict(self) -> dict[str, Any]:
        data = {
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "sequence_number": self.sequence_number,
            "round_number": self.round_number,
            "context": self.context,
        }
        for name in self._payload_fields():
            data[name] = getattr(self, name)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LogEvent":
        payload = {name: data[name] for name in cls._payload_fields() if name in data}
        return cls(
            event_type=EventType(data["event_type"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sequence_number=data.get("sequence_number", 0),
            round_number=data.get("round_number"),
            context=data.get("context", {}),
            **payload,
        )

    def __str__(self) -> str:
        name = self.context.get("event_name", self.event_type.value)
        return f"[{self.sequence_number}] {name.upper()} {self.context}"


@dataclass
class RollEvent(LogEvent):
    """A dice roll, tagged with the table its result was looked up on."""

    notation: str = ""
    rolls: list[int] = field(default_factory=list)
    modifier: int = 0
    total: int = 0
    reason: str = ""
    table_id: str = ""

    def __post_init__(self):
        self.event_type = EventType.ROLL

    def __str__(self) -> str:
        shown = f"{self.rolls}"
        if self.modifier:
            shown += f" {'+' if self.modifier > 0 else '-'} {abs(self.modifier)}"
        table = f" -> {self.table_id}" if self.table_id else ""
        return f"[{self.sequence_number}] ROLL {self.notation}: {shown} = {self.total} ({self.reason}){table}"


@dataclass
class TransitionEvent(LogEvent):
    """A phase or scale tier transition."""

    from_state: str = ""
    to_state: str = ""
    trigger: str = ""

    def __post_init__(self):
        self.event_type = EventType.TRANSITION

    def __str__(self) -> str:
        return f"[{self.sequence_number}] TRANSITION {self.from_state} -> {self.to_state} (trigger: {self.trigger})"


@dataclass
class TableLookupEvent(LogEvent):
    """A mishap or complication table result."""

    table_id: str = ""
    table_name: str = ""
    roll_total: int = 0
    result_text: str = ""
    reroll_count: int = 0

    def __post_init__(self):
        self.event_type = EventType.TABLE_LOOKUP

    def __str__(self) -> str:
        reroll_str = f" (rerolled {self.reroll_count}x)" if self.reroll_count else ""
        return f"[{self.sequence_number}] TABLE {self.table_name} [{self.roll_total}]: {self.result_text}{reroll_str}"


@dataclass
class MovementEvent(LogEvent):
    """An accepted, denied or undone movement."""

    entity_id: str = ""
    entity_name: str = ""
    feet_moved: float = 0.0
    accepted: bool = True
    undo: bool = False
    reason: str = ""

    def __post_init__(self):
        self.event_type = EventType.MOVEMENT

    def __str__(self) -> str:
        who = self.entity_name or self.entity_id
        if self.undo:
            return f"[{self.sequence_number}] UNDO {who} (-{round(self.feet_moved)} ft)"
        if not self.accepted:
            return f"[{self.sequence_number}] MOVE DENIED {who}: {self.reason}"
        return f"[{self.sequence_number}] MOVE {who} {round(self.feet_moved)} ft"


@dataclass
class RoundEvent(LogEvent):
    """A round boundary that reset the movement ledger."""

    old_round: Optional[int] = None
    new_round: int = 0

    def __post_init__(self):
        self.event_type = EventType.ROUND

    def __str__(self) -> str:
        return f"[{self.sequence_number}] ROUND {self.old_round} -> {self.new_round}"


_EVENT_CLASSES: dict[EventType, type] = {
    EventType.ROLL: RollEvent,
    EventType.TRANSITION: TransitionEvent,
    EventType.TABLE_LOOKUP: TableLookupEvent,
    EventType.MOVEMENT: MovementEvent,
    EventType.ROUND: RoundEvent,
}


class RunLog:
    """
    Central run log for all encounter events.

    Singleton pattern - use get_run_log() to access.
    """

    _instance: Optional["RunLog"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self._initialized = True
        self._events: list[LogEvent] = []
        self._sequence: int = 0
        self._seed: Optional[int] = None
        self._session_start: datetime = datetime.now()
        self._round_provider: Optional[Callable[[], Optional[int]]] = None
        self._subscribers: list[Callable[[LogEvent], None]] = []
        self._paused: bool = False

    def reset(self) -> None:
        """Reset the log for a new encounter."""
        self._events = []
        self._sequence = 0
        self._session_start = datetime.now()
        logger.info("RunLog reset")

    def set_seed(self, seed: int) -> None:
        """Record the RNG seed used for this session."""
        self._seed = seed
        logger.info(f"RunLog seed set: {seed}")

    def get_seed(self) -> Optional[int]:
        """Get the RNG seed for this session."""
        return self._seed

    def set_round_provider(self, provider: Optional[Callable[[], Optional[int]]]) -> None:
        """Set a callback returning the current round number for stamping events."""
        self._round_provider = provider

    def pause(self) -> None:
        """Pause logging."""
        self._paused = True

    def resume(self) -> None:
        """Resume logging."""
        self._paused = False

    def subscribe(self, callback: Callable[[LogEvent], None]) -> None:
        """Subscribe to receive events as they are logged."""
        self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[LogEvent], None]) -> None:
        """Unsubscribe from events."""
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _get_round(self) -> Optional[int]:
        if self._round_provider:
            try:
                return self._round_provider()
            except Exception as e:
                logger.warning(f"Round provider error: {e}")
                return None
        return None

    def _log_event(self, event: LogEvent) -> None:
        """Internal method to log an event."""
        if self._paused:
            return

        self._sequence += 1
        event.sequence_number = self._sequence
        if event.round_number is None:
            event.round_number = self._get_round()
        self._events.append(event)

        for subscriber in self._subscribers:
            try:
                subscriber(event)
            except Exception as e:
                logger.warning(f"Subscriber error: {e}")

    def log_roll(
        self,
        notation: str,
        rolls: list[int],
        modifier: int,
        total: int,
        reason: str = "",
        table_id: str = "",
        context: Optional[dict[str, Any]] = None,
    ) -> RollEvent:
        """Log a dice roll."""
        event = RollEvent(
            notation=notation,
            rolls=rolls,
            modifier=modifier,
            total=total,
            reason=reason,
            table_id=table_id,
            context=context or {},
        )
        self._log_event(event)
        return event

    def log_transition(
        self,
        from_state: str,
        to_state: str,
        trigger: str,
        context: Optional[dict[str, Any]] = None,
    ) -> TransitionEvent:
        """Log a phase or tier transition."""
        event = TransitionEvent(
            from_state=from_state,
            to_state=to_state,
            trigger=trigger,
            context=context or {},
        )
        self._log_event(event)
        return event

    def log_table_lookup(
        self,
        table_id: str,
        table_name: str,
        roll_total: int,
        result_text: str,
        reroll_count: int = 0,
        context: Optional[dict[str, Any]] = None,
    ) -> TableLookupEvent:
        """Log a table lookup."""
        event = TableLookupEvent(
            table_id=table_id,
            table_name=table_name,
            roll_total=roll_total,
            result_text=result_text,
            reroll_count=reroll_count,
            context=context or {},
        )
        self._log_event(event)
        return event

    def log_movement(
        self,
        entity_id: str,
        feet_moved: float,
        accepted: bool = True,
        entity_name: str = "",
        undo: bool = False,
        reason: str = "",
        context: Optional[dict[str, Any]] = None,
    ) -> MovementEvent:
        """Log a performed, denied or undone move."""
        event = MovementEvent(
            entity_id=entity_id,
            entity_name=entity_name,
            feet_moved=feet_moved,
            accepted=accepted,
            undo=undo,
            reason=reason,
            context=context or {},
        )
        self._log_event(event)
        return event

    def log_round(
        self,
        old_round: Optional[int],
        new_round: int,
        context: Optional[dict[str, Any]] = None,
    ) -> RoundEvent:
        """Log a round boundary."""
        event = RoundEvent(
            old_round=old_round,
            new_round=new_round,
            round_number=new_round,
            context=context or {},
        )
        self._log_event(event)
        return event

    def log_custom(
        self,
        event_name: str,
        details: dict[str, Any],
    ) -> LogEvent:
        """Log a custom event."""
        event = LogEvent(
            event_type=EventType.CUSTOM,
            context={"event_name": event_name, **details},
        )
        self._log_event(event)
        return event

    def get_events(
        self,
        event_type: Optional[EventType] = None,
        since_sequence: int = 0,
    ) -> list[LogEvent]:
        """
        Get logged events.

        Args:
            event_type: Filter by event type (None = all)
            since_sequence: Only events after this sequence number
        """
        events = [e for e in self._events if e.sequence_number > since_sequence]
        if event_type:
            events = [e for e in events if e.event_type == event_type]
        return events

    def get_rolls(self) -> list[RollEvent]:
        return [e for e in self._events if isinstance(e, RollEvent)]

    def get_transitions(self) -> list[TransitionEvent]:
        return [e for e in self._events if isinstance(e, TransitionEvent)]

    def get_table_lookups(self) -> list[TableLookupEvent]:
        return [e for e in self._events if isinstance(e, TableLookupEvent)]

    def get_movements(self) -> list[MovementEvent]:
        return [e for e in self._events if isinstance(e, MovementEvent)]

    def get_event_count(self) -> int:
        return len(self._events)

    def get_summary(self) -> dict[str, Any]:
        """Get a summary of the run log."""
        return {
            "session_start": self._session_start.isoformat(),
            "seed": self._seed,
            "total_events": len(self._events),
            "rolls": len(self.get_rolls()),
            "transitions": len(self.get_transitions()),
            "table_lookups": len(self.get_table_lookups()),
            "movements": len(self.get_movements()),
            "last_sequence": self._sequence,
        }

    def to_dict(self) -> dict[str, Any]:
        """Serialize the entire log to a dictionary."""
        return {
            "session_start": self._session_start.isoformat(),
            "seed": self._seed,
            "sequence": self._sequence,
            "events": [e.to_dict() for e in self._events],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    def save(self, filepath: str) -> None:
        """Save the log to a file."""
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self.to_json())
        logger.info(f"RunLog saved to {filepath}")

    @classmethod
    def load(cls, filepath: str) -> "RunLog":
        """Load a log from a file into the global instance."""
        with open(filepath, "r", encoding="utf-8") as f:
            data = json.load(f)

        log = get_run_log()
        log.reset()
        log._session_start = datetime.fromisoformat(data["session_start"])
        log._seed = data.get("seed")
        log._sequence = data.get("sequence", 0)

        for event_data in data.get("events", []):
            event_type = EventType(event_data["event_type"])
            event_cls = _EVENT_CLASSES.get(event_type, LogEvent)
            log._events.append(event_cls.from_dict(event_data))

        logger.info(f"RunLog loaded from {filepath}: {len(log._events)} events")
        return log

    def format_log(
        self,
        event_types: Optional[list[EventType]] = None,
        max_events: Optional[int] = None,
    ) -> str:
        """Format the log as a human-readable string."""
        lines = [
            "=== Run Log ===",
            f"Session: {self._session_start.isoformat()}",
            f"Seed: {self._seed if self._seed is not None else 'not set'}",
            f"Total Events: {len(self._events)}",
            "",
        ]

        events = self._events
        if event_types:
            events = [e for e in events if e.event_type in event_types]
        if max_events:
            events = events[-max_events:]

        for event in events:
            lines.append(str(event))

        return "\n".join(lines)


# Singleton access
_run_log: Optional[RunLog] = None


def get_run_log() -> RunLog:
    """Get the global RunLog instance."""
    global _run_log
    if _run_log is None:
        _run_log = RunLog()
    return _run_log


def reset_run_log() -> RunLog:
    """Reset and return the global RunLog instance."""
    log = get_run_log()
    log.reset()
    return log
