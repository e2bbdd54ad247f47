"""Chase complication tables and resolver."""

from infernal_chase.complications.complication_table import (
    NO_COMPLICATION_MIN,
    AVERNUS_COMPLICATIONS,
    STRATEGIC_COMPLICATIONS,
    APPROACH_COMPLICATIONS,
    TACTICAL_COMPLICATIONS,
    POINT_BLANK_COMPLICATIONS,
    complications_for_scale,
    avernus_complication,
    complication_for_roll,
    complication_roll_range,
)
from infernal_chase.complications.complication_resolver import (
    COMPLICATION_TABLE_ID,
    VehicleCheck,
    ActiveComplication,
    slows_vehicle,
    speed_modifier_for,
    expire_speed_modifiers,
    roll_complication,
    resolve_vehicle_check,
    skip_vehicle_check,
)

__all__ = [
    "NO_COMPLICATION_MIN",
    "AVERNUS_COMPLICATIONS",
    "STRATEGIC_COMPLICATIONS",
    "APPROACH_COMPLICATIONS",
    "TACTICAL_COMPLICATIONS",
    "POINT_BLANK_COMPLICATIONS",
    "complications_for_scale",
    "avernus_complication",
    "complication_for_roll",
    "complication_roll_range",
    "COMPLICATION_TABLE_ID",
    "VehicleCheck",
    "ActiveComplication",
    "slows_vehicle",
    "speed_modifier_for",
    "expire_speed_modifiers",
    "roll_complication",
    "resolve_vehicle_check",
    "skip_vehicle_check",
]
