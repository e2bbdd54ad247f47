"""Attack arcs and station cover."""

from infernal_chase.cover.cover_resolver import (
    CoverResult,
    TargetCover,
    COVER_AC_BONUS,
    ARC_DISPLAY_NAMES,
    cover_ac_bonus,
    cover_from_bonus,
    format_cover,
    zone_cover_description,
    arc_display_name,
    attack_arc,
    is_zone_visible_from_arc,
    cover_from_position,
    cover_between_vehicles,
    same_vehicle_cover,
    targets_with_cover,
)

__all__ = [
    "CoverResult",
    "TargetCover",
    "COVER_AC_BONUS",
    "ARC_DISPLAY_NAMES",
    "cover_ac_bonus",
    "cover_from_bonus",
    "format_cover",
    "zone_cover_description",
    "arc_display_name",
    "attack_arc",
    "is_zone_visible_from_arc",
    "cover_from_position",
    "cover_between_vehicles",
    "same_vehicle_cover",
    "targets_with_cover",
]
