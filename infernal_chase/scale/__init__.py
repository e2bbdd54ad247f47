"""Combat scale tiers and the auto-tier policy."""

from infernal_chase.scale.scale_resolver import (
    ScaleTier,
    ScaleResolver,
    SCALE_TIERS,
    MILE_IN_FEET,
    get_tier,
    tier_index,
    tier_for_distance,
    tiers_in_order,
    movement_allowance,
    closing_speed,
    new_distance,
    format_distance,
    is_action_available,
    scale_thresholds,
    engagement_distance,
    suggest_tier,
)

__all__ = [
    "ScaleTier",
    "ScaleResolver",
    "SCALE_TIERS",
    "MILE_IN_FEET",
    "get_tier",
    "tier_index",
    "tier_for_distance",
    "tiers_in_order",
    "movement_allowance",
    "closing_speed",
    "new_distance",
    "format_distance",
    "is_action_available",
    "scale_thresholds",
    "engagement_distance",
    "suggest_tier",
]
