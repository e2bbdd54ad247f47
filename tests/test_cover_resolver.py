"""
Unit tests for attack arcs and station cover.
"""

import math

import pytest

from infernal_chase.cover.cover_resolver import (
    arc_display_name,
    attack_arc,
    cover_ac_bonus,
    cover_between_vehicles,
    cover_from_bonus,
    cover_from_position,
    format_cover,
    is_zone_visible_from_arc,
    same_vehicle_cover,
    targets_with_cover,
    zone_cover_description,
)
from infernal_chase.data_models import AttackArc, CoverType, Faction, Position, VehicleZone


class TestAttackArc:
    """Tests for arc bucketing."""

    def test_attack_bearing_zero_against_north_facing_is_rear(self):
        """Bearing 0 means the attacker fires northward, from behind."""
        assert attack_arc(0, 0) == AttackArc.REAR

    @pytest.mark.parametrize(
        "relative,expected",
        [
            (0, AttackArc.FRONT),
            (44.9, AttackArc.FRONT),
            (45, AttackArc.RIGHT),
            (134.9, AttackArc.RIGHT),
            (135, AttackArc.REAR),
            (224.9, AttackArc.REAR),
            (225, AttackArc.LEFT),
            (314.9, AttackArc.LEFT),
            (315, AttackArc.FRONT),
        ],
    )
    def test_quadrant_boundaries(self, relative, expected):
        """attack_angle = relative + 180 with facing 0 gives that relative angle."""
        assert attack_arc(relative + 180, 0) == expected

    def test_arcs_partition_the_circle(self):
        """Every whole degree lands in exactly one arc, 90 degrees each."""
        counts = {arc: 0 for arc in AttackArc}
        for angle in range(360):
            counts[attack_arc(angle, 0)] += 1
        assert all(count == 90 for count in counts.values())

    def test_facing_rotates_arcs(self):
        """A vehicle facing east is hit in the front by an attacker to its east."""
        angle = 270  # bearing from an attacker east of the target
        assert attack_arc(angle, 90) == AttackArc.FRONT
        assert attack_arc(angle, 0) == AttackArc.RIGHT

    def test_display_names(self):
        assert arc_display_name(AttackArc.FRONT) == "Bow"
        assert arc_display_name(AttackArc.RIGHT) == "Starboard"
        assert arc_display_name(AttackArc.REAR) == "Stern"
        assert arc_display_name(AttackArc.LEFT) == "Port"


class TestCoverValues:
    """Tests for AC bonus mapping."""

    def test_bonus_mapping(self):
        assert cover_ac_bonus(CoverType.NONE) == 0
        assert cover_ac_bonus(CoverType.HALF) == 2
        assert cover_ac_bonus(CoverType.THREE_QUARTERS) == 5
        assert math.isinf(cover_ac_bonus(CoverType.FULL))

    def test_reverse_lookup(self):
        assert cover_from_bonus(0) == CoverType.NONE
        assert cover_from_bonus(2) == CoverType.HALF
        assert cover_from_bonus(5) == CoverType.THREE_QUARTERS
        assert cover_from_bonus(math.inf) == CoverType.FULL

    def test_text(self):
        assert format_cover(CoverType.HALF) == "half cover (+2 AC)"
        assert "fully exposed" in zone_cover_description(VehicleZone(id="roof", name="Roof"))


class TestCoverFromPosition:
    """Tests for cover against an attacker on the map."""

    def test_attacker_north_of_north_facing_vehicle_hits_front(self, grinder):
        helm = grinder.template.get_zone("helm")
        result = cover_from_position(Position(0, -100), grinder, helm)
        assert result.attack_arc == AttackArc.FRONT
        assert result.is_visible
        assert result.effective_cover == CoverType.THREE_QUARTERS
        assert result.ac_bonus == 5

    def test_attacker_south_of_north_facing_vehicle_hits_rear(self, grinder):
        """The helm is only visible from the front."""
        helm = grinder.template.get_zone("helm")
        result = cover_from_position(Position(0, 100), grinder, helm)
        assert result.attack_arc == AttackArc.REAR
        assert not result.is_visible
        assert result.effective_cover == CoverType.FULL
        assert math.isinf(result.ac_bonus)
        assert result.base_cover == CoverType.THREE_QUARTERS
        assert "not visible from the rear" in result.reason

    def test_side_station_visible_from_side(self, grinder):
        station = grinder.template.get_zone("wrecking_ball_station")
        result = cover_from_position(Position(100, 0), grinder, station)
        assert result.attack_arc == AttackArc.RIGHT
        assert result.is_visible
        assert result.effective_cover == CoverType.HALF
        assert "Starboard" in result.reason

    def test_cover_is_not_reduced_by_range(self, grinder):
        passengers = grinder.template.get_zone("passenger_area")
        near = cover_from_position(Position(0, 10), grinder, passengers)
        far = cover_from_position(Position(0, 5000), grinder, passengers)
        assert near.effective_cover == far.effective_cover == CoverType.THREE_QUARTERS

    def test_between_vehicles_uses_attacker_position(self, make_vehicle, grinder):
        attacker = make_vehicle("raider", x=-200, y=0)
        port = grinder.template.get_zone("harpoon_station_port")
        result = cover_between_vehicles(attacker, grinder, port)
        assert result.attack_arc == AttackArc.LEFT
        assert result.is_visible

    def test_visibility_helper(self, grinder):
        helm = grinder.template.get_zone("helm")
        assert is_zone_visible_from_arc(helm, AttackArc.FRONT)
        assert not is_zone_visible_from_arc(helm, AttackArc.LEFT)


class TestSameVehicle:
    """Tests for attacks between stations on one vehicle."""

    def test_bypasses_arcs(self, grinder):
        helm = grinder.template.get_zone("helm")
        ball = grinder.template.get_zone("wrecking_ball_station")
        result = same_vehicle_cover(ball, helm)
        assert result.is_visible
        assert result.effective_cover == CoverType.THREE_QUARTERS
        assert result.reason.startswith("Same vehicle")


class TestTargetsWithCover:
    """Tests for listing the crew aboard a target vehicle."""

    def test_lists_crew_with_cover(self, make_vehicle, make_creature, grinder):
        attacker = make_vehicle("raider", faction=Faction.PARTY, x=0, y=-300)
        driver = make_creature("driver", creature_type="npc", vehicle_id=grinder.id, zone_id="helm")
        gunner = make_creature(
            "gunner", creature_type="npc", vehicle_id=grinder.id, zone_id="wrecking_ball_station"
        )
        stray = make_creature("stray", creature_type="npc", vehicle_id=grinder.id, zone_id="roof")
        elsewhere = make_creature("other", creature_type="npc", vehicle_id="raider", zone_id="helm")

        targets = targets_with_cover(attacker, None, grinder, [driver, gunner, stray, elsewhere])

        assert [t.creature_id for t in targets] == ["driver", "gunner"]
        assert targets[0].cover.is_visible
        assert not targets[1].cover.is_visible
        assert targets[1].zone_name == "Wrecking Ball Station"

    def test_same_vehicle_uses_station_cover(self, make_creature, grinder):
        ball = grinder.template.get_zone("wrecking_ball_station")
        driver = make_creature("driver", creature_type="npc", vehicle_id=grinder.id, zone_id="helm")
        targets = targets_with_cover(grinder, ball, grinder, [driver])
        assert targets[0].cover.is_visible
        assert targets[0].cover.effective_cover == CoverType.THREE_QUARTERS
