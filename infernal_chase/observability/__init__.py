"""
Observability and replay for the Infernal Chase engine.

Provides structured logging of encounter events (rolls, transitions,
mishap and complication lookups, movement, round resets) and deterministic
dice replay.
"""

from infernal_chase.observability.run_log import (
    RunLog,
    LogEvent,
    EventType,
    RollEvent,
    TransitionEvent,
    TableLookupEvent,
    MovementEvent,
    RoundEvent,
    get_run_log,
    reset_run_log,
)
from infernal_chase.observability.replay import RecordedRoll, ReplayDrift, ReplaySession

__all__ = [
    "RunLog",
    "LogEvent",
    "EventType",
    "RollEvent",
    "TransitionEvent",
    "TableLookupEvent",
    "MovementEvent",
    "RoundEvent",
    "get_run_log",
    "reset_run_log",
    "RecordedRoll",
    "ReplayDrift",
    "ReplaySession",
]
