"""Vehicle mishap table and resolver."""

from infernal_chase.mishaps.mishap_table import (
    MISHAP_TABLE,
    mishap_for_roll,
    table_entry_for,
    mishap_severity,
    can_repair,
    repair_description,
    mishap_roll_range,
    new_active_mishap,
)
from infernal_chase.mishaps.mishap_resolver import (
    MAX_MISHAP_ATTEMPTS,
    VehicleMishapState,
    DamageGate,
    MishapRoll,
    DamageResolution,
    on_damage,
    check_mishap_from_failed_check,
    is_mishap_valid,
    available_mishaps,
    roll_mishap,
    apply_mishap,
    roll_and_apply,
    resolve_damage,
)

__all__ = [
    "MISHAP_TABLE",
    "mishap_for_roll",
    "table_entry_for",
    "mishap_severity",
    "can_repair",
    "repair_description",
    "mishap_roll_range",
    "new_active_mishap",
    "MAX_MISHAP_ATTEMPTS",
    "VehicleMishapState",
    "DamageGate",
    "MishapRoll",
    "DamageResolution",
    "on_damage",
    "check_mishap_from_failed_check",
    "is_mishap_valid",
    "available_mishaps",
    "roll_mishap",
    "apply_mishap",
    "roll_and_apply",
    "resolve_damage",
]
