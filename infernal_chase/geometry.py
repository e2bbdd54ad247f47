"""
Plane geometry helpers shared by the resolvers.

Coordinates are feet with y growing downward (screen convention), so
north is -y and facings are measured clockwise from north.
"""

import math
from typing import Optional

from infernal_chase.data_models import Bounds, Position


def distance(a: Position, b: Position) -> float:
    """Euclidean distance between two positions."""
    return math.hypot(b.x - a.x, b.y - a.y)


def vector_length(dx: float, dy: float) -> float:
    return math.hypot(dx, dy)


def finite_delta(dx: float, dy: float) -> tuple[float, float]:
    """Replace NaN or infinite components with 0."""
    return (
        float(dx) if math.isfinite(dx) else 0.0,
        float(dy) if math.isfinite(dy) else 0.0,
    )


def scale_vector(dx: float, dy: float, length: float) -> tuple[float, float]:
    """
    Rescale (dx, dy) to the given magnitude, keeping its direction.

    A zero vector stays zero. Components are normalised by the larger one
    first so vectors whose length overflows a float still keep a direction.
    """
    biggest = max(abs(dx), abs(dy))
    if biggest == 0:
        return 0.0, 0.0
    ux, uy = dx / biggest, dy / biggest
    factor = length / math.hypot(ux, uy)
    return ux * factor, uy * factor


def normalize_angle(angle: float) -> float:
    """Wrap an angle in degrees into [0, 360)."""
    angle = angle % 360.0
    # -1e-15 % 360 rounds to 360.0
    if angle >= 360.0:
        return 0.0
    return angle


def angle_to(origin: Position, target: Position) -> float:
    """
    Bearing from origin to target in degrees, 0 = north, clockwise.

    Uses atan2(dx, -dy) because screen y grows downward.
    """
    dx = target.x - origin.x
    dy = target.y - origin.y
    return normalize_angle(math.degrees(math.atan2(dx, -dy)))


def facing_unit_vector(facing: float) -> tuple[float, float]:
    """Unit vector pointing along a facing (0 = north = (0, -1))."""
    rad = math.radians(facing - 90)
    return math.cos(rad), math.sin(rad)


def project_onto_facing(dx: float, dy: float, facing: float) -> tuple[float, float]:
    """Keep only the component of (dx, dy) along the facing axis."""
    fx, fy = facing_unit_vector(facing)
    dot = dx * fx + dy * fy
    return fx * dot, fy * dot


def clamp_position(position: Position, bounds: Optional[Bounds]) -> Position:
    """Component-wise clamp into bounds; returns a new Position."""
    if bounds is None:
        return Position(position.x, position.y)
    return Position(
        x=max(bounds.min_x, min(bounds.max_x, position.x)),
        y=max(bounds.min_y, min(bounds.max_y, position.y)),
    )
