"""Elevation zones and high ground modifiers."""

from infernal_chase.elevation.elevation_resolver import (
    ElevationEffects,
    ElevationCombatInfo,
    elevation_at,
    elevation_difference,
    attack_modifier,
    extended_range,
    parse_weapon_range,
    format_range_extension,
    format_elevation_diff,
    format_attack_modifier,
    elevation_effects,
    elevation_combat_info,
)

__all__ = [
    "ElevationEffects",
    "ElevationCombatInfo",
    "elevation_at",
    "elevation_difference",
    "attack_modifier",
    "extended_range",
    "parse_weapon_range",
    "format_range_extension",
    "format_elevation_diff",
    "format_attack_modifier",
    "elevation_effects",
    "elevation_combat_info",
]
