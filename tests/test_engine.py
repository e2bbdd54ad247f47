"""
Integration tests for the TacticalEngine facade.
"""

import math
import threading

import pytest

from infernal_chase.data_models import (
    AttackArc,
    BackgroundImage,
    Bounds,
    CoverType,
    DiceRoller,
    ElevationZone,
    EncounterPhase,
    Faction,
    Position,
    ScaleName,
    Size,
)
from infernal_chase.engine import EngineConfig, TacticalEngine
from infernal_chase.game_state.phase_machine import InvalidTransitionError
from infernal_chase.movement.movement_ledger import NO_MOVEMENT_REMAINING
from infernal_chase.observability.run_log import EventType, get_run_log
from infernal_chase.scale.scale_resolver import POINT_BLANK, TACTICAL


class TestEngineConfig:
    """Tests for configuration coercion."""

    def test_defaults(self):
        config = EngineConfig()
        assert config.max_mishap_attempts == 20
        assert config.default_creature_walk_speed == 30
        assert config.initial_scale == ScaleName.TACTICAL
        assert config.initial_phase == EncounterPhase.SETUP

    def test_strings_coerced(self):
        config = EngineConfig(initial_scale="approach", initial_phase="combat")
        assert config.initial_scale == ScaleName.APPROACH
        assert config.initial_phase == EncounterPhase.COMBAT

    def test_values_clamped(self):
        config = EngineConfig(max_mishap_attempts=0, default_creature_walk_speed=-5)
        assert config.max_mishap_attempts == 1
        assert config.default_creature_walk_speed == 0

    def test_engine_starts_in_combat_when_configured(self):
        engine = TacticalEngine(EngineConfig(initial_phase="combat"))
        assert engine.phase == EncounterPhase.COMBAT

    def test_seed_applied_to_dice(self):
        TacticalEngine(EngineConfig(seed=7))
        first = DiceRoller.roll_d20("first").total
        assert DiceRoller.get_seed() == 7
        assert get_run_log().get_seed() == 7

        TacticalEngine(EngineConfig(seed=7))
        assert DiceRoller.roll_d20("again").total == first

    def test_runtime_option_defaults(self):
        config = EngineConfig()
        assert config.seed is None
        assert config.verbose is False


class TestPhaseAndRound:
    """Tests for phase transitions and round resets."""

    def test_new_engine_in_setup(self, engine):
        assert engine.phase == EncounterPhase.SETUP
        assert engine.current_tier is TACTICAL

    def test_start_combat_begins_round_one(self, engine):
        engine.start_combat()
        assert engine.phase == EncounterPhase.COMBAT
        assert engine.round_number == 1

    def test_next_round_resets_budgets(self, combat_engine, make_vehicle):
        ride = make_vehicle()
        combat_engine.select_scale("point_blank")
        combat_engine.request_move(ride, 120, 0)
        assert combat_engine.remaining_movement(ride) == 0

        assert combat_engine.next_round() == 2
        assert combat_engine.remaining_movement(ride) == 120
        assert combat_engine.undo_last_move([ride]) is None

    def test_next_round_outside_combat_raises(self, engine):
        with pytest.raises(InvalidTransitionError):
            engine.next_round()

    def test_external_round_feed(self, combat_engine, make_vehicle):
        ride = make_vehicle()
        combat_engine.select_scale("point_blank")
        combat_engine.request_move(ride, 50, 0)
        assert not combat_engine.sync_round(1)
        assert combat_engine.remaining_movement(ride) == pytest.approx(70)
        assert combat_engine.sync_round(7)
        assert combat_engine.round_number == 7
        assert combat_engine.remaining_movement(ride) == 120

    def test_next_round_continues_from_external_round(self, combat_engine, make_vehicle):
        ride = make_vehicle()
        combat_engine.sync_round(5)
        combat_engine.request_move(ride, 40, 0)
        assert combat_engine.next_round() == 6
        assert combat_engine.phase_machine.round_number == 6
        assert combat_engine.round_number == 6
        assert combat_engine.ledger.used(ride) == 0

    def test_round_changes_logged(self, engine):
        engine.start_combat()
        engine.next_round()
        rounds = get_run_log().get_events(EventType.ROUND)
        assert [(e.old_round, e.new_round) for e in rounds] == [(0, 1), (1, 2)]

    def test_end_and_reset(self, combat_engine):
        combat_engine.end_combat()
        assert combat_engine.phase == EncounterPhase.ENDED
        combat_engine.reset_encounter()
        assert combat_engine.phase == EncounterPhase.SETUP
        assert combat_engine.round_number == 0

    def test_events_stamped_with_round(self, combat_engine, make_vehicle):
        combat_engine.next_round()
        combat_engine.request_move(make_vehicle(), 10, 0)
        movement = get_run_log().get_movements()[-1]
        assert movement.round_number == 2


class TestResolveScale:
    """Tests for engagement-driven scale changes."""

    def test_setup_follows_distance(self, engine, make_vehicle):
        a = make_vehicle("a", x=0, y=0)
        b = make_vehicle("b", faction=Faction.ENEMY, x=50, y=0)
        assert engine.resolve_scale([a, b]) is POINT_BLANK

    def test_combat_does_not_widen(self, engine, make_vehicle):
        a = make_vehicle("a", x=0, y=0)
        b = make_vehicle("b", faction=Faction.ENEMY, x=50, y=0)
        engine.resolve_scale([a, b])
        engine.start_combat()
        b.position = Position(3000, 0)
        assert engine.resolve_scale([a, b]) is POINT_BLANK

    def test_no_opposing_pair_keeps_tier(self, engine, make_vehicle):
        assert engine.resolve_scale([make_vehicle()]) is TACTICAL

    def test_creatures_considered(self, engine, make_vehicle, make_creature):
        enemy = make_vehicle("e", faction=Faction.ENEMY)
        hero = make_creature("hero", x=0, y=40)
        assert engine.resolve_scale([enemy], [hero]) is POINT_BLANK


class TestRequestMove:
    """Tests for movement through the facade."""

    def test_accepted_move_written_back(self, combat_engine, make_vehicle):
        ride = make_vehicle()
        result = combat_engine.request_move(ride, 0, -100)
        assert result.accepted
        assert ride.position == Position(0, -100)
        assert combat_engine.remaining_movement(ride) == pytest.approx(260)

    def test_denied_move_logged(self, combat_engine, make_creature):
        combat_engine.select_scale("point_blank")
        hero = make_creature()
        combat_engine.request_move(hero, 30, 0)
        result = combat_engine.request_move(hero, 5, 0)

        assert result.rejected
        assert result.reason == NO_MOVEMENT_REMAINING
        assert hero.position == Position(30, 0)
        denied = get_run_log().get_movements()[-1]
        assert not denied.accepted
        assert denied.entity_id == "creature-c1"
        assert denied.reason == NO_MOVEMENT_REMAINING

    def test_engine_bounds_from_background_image(self, engine, make_vehicle):
        image = BackgroundImage(natural_width=200, natural_height=100, feet_per_pixel=1, scale=1)
        bounds = engine.set_background_image(image)
        assert bounds == Bounds(min_x=-100, max_x=100, min_y=-50, max_y=50)

        ride = make_vehicle()
        engine.request_move(ride, 500, 500)
        assert ride.position == Position(100, 50)

    def test_explicit_bounds_override(self, engine, make_vehicle):
        engine.set_background_image(BackgroundImage(natural_width=200, natural_height=100))
        ride = make_vehicle()
        engine.request_move(ride, 500, 0, bounds=Bounds(min_x=0, max_x=300, min_y=0, max_y=0))
        assert ride.position == Position(300, 0)

    def test_clearing_background_removes_bounds(self, engine):
        engine.set_background_image(BackgroundImage(natural_width=200, natural_height=100))
        assert engine.set_background_image(None) is None
        assert engine.bounds is None

    def test_setup_moves_not_charged(self, engine, make_vehicle):
        ride = make_vehicle()
        engine.request_move(ride, 5000, 0)
        engine.start_combat()
        assert engine.remaining_movement(ride) == 360

    @pytest.mark.parametrize("dx", [math.nan, math.inf])
    def test_non_finite_request_leaves_entity_alone(self, combat_engine, make_vehicle, dx):
        ride = make_vehicle()
        result = combat_engine.request_move(ride, dx, 0)
        assert result.feet_moved == 0
        assert ride.position == Position(0, 0)
        assert combat_engine.remaining_movement(ride) == 360
        assert get_run_log().get_movements() == []


class TestUndo:
    """Tests for undo through the facade."""

    def test_undo_restores_supplied_entity(self, combat_engine, make_vehicle):
        ride = make_vehicle(x=10, y=20)
        combat_engine.request_move(ride, 100, 0)

        restored = combat_engine.undo_last_move([ride])

        assert restored == Position(10, 20)
        assert ride.position == Position(10, 20)
        assert combat_engine.remaining_movement(ride) == 360

    def test_undo_matches_kind_and_id(self, combat_engine, make_vehicle, make_creature):
        ride = make_vehicle("twin")
        twin = make_creature("twin", x=5, y=5)
        combat_engine.request_move(twin, 10, 0)

        combat_engine.undo_last_move([ride, twin])

        assert twin.position == Position(5, 5)
        assert ride.position == Position(0, 0)

    def test_undo_without_entity_returns_position(self, combat_engine, make_vehicle):
        ride = make_vehicle(x=1, y=2)
        combat_engine.request_move(ride, 30, 0)
        assert combat_engine.undo_last_move() == Position(1, 2)
        assert ride.position == Position(31, 2)

    def test_nothing_to_undo(self, combat_engine):
        assert combat_engine.undo_last_move() is None

    def test_undo_logged(self, combat_engine, make_vehicle):
        ride = make_vehicle()
        combat_engine.request_move(ride, 30, 0)
        combat_engine.undo_last_move([ride])
        undo = get_run_log().get_movements()[-1]
        assert undo.undo
        assert undo.feet_moved == pytest.approx(30)


class TestAttacks:
    """Tests for arc, cover and elevation through the facade."""

    def test_arc_and_cover_from_position(self, engine, grinder):
        helm = grinder.template.get_zone("helm")
        result = engine.attack_arc_and_cover(Position(0, -100), grinder, helm)
        assert result.attack_arc == AttackArc.FRONT
        assert result.effective_cover == CoverType.THREE_QUARTERS

    def test_same_vehicle_skips_arcs(self, engine, grinder):
        helm = grinder.template.get_zone("helm")
        ball = grinder.template.get_zone("wrecking_ball_station")
        result = engine.attack_arc_and_cover(
            Position(0, 100), grinder, helm, attacker_vehicle=grinder, attacker_zone=ball
        )
        assert result.is_visible
        assert result.effective_cover == CoverType.THREE_QUARTERS

    def test_elevation_effects(self, engine):
        cliff = ElevationZone(position=Position(-10, -10), size=Size(20, 20), elevation=20)
        effects = engine.elevation_effects(Position(0, 0), Position(0, 200), [cliff], 100)
        assert effects.attack_modifier == 2
        assert effects.extended_range == 120


class TestDamage:
    """Tests for damage and mishaps through the facade."""

    def test_heavy_hit_rolls_and_applies(self, engine, grinder, scripted_d20):
        scripted_d20(2)
        result = engine.resolve_damage(25, grinder)
        assert result.hp_delta == -25
        assert result.mishap_roll.mishap.name == "Locked Steering"
        assert grinder.has_active_mishap("Locked Steering")

    def test_configured_attempt_bound(self, make_vehicle, scripted_d20):
        engine = TacticalEngine(EngineConfig(max_mishap_attempts=2))
        ride = make_vehicle()  # no weapons
        scripted_d20(8, 9, 12)
        result = engine.resolve_damage(10, ride)
        assert result.mishap_triggered
        assert result.mishap_roll is None
        assert ride.active_mishaps == []

    def test_manual_mishap_roll(self, engine, grinder, scripted_d20):
        scripted_d20(20)
        roll = engine.roll_mishap(grinder)
        assert roll.mishap.name == "Flip"
        assert grinder.has_active_mishap("Flip")

    def test_locked_steering_constrains_later_moves(self, combat_engine, grinder, scripted_d20):
        scripted_d20(3)
        combat_engine.resolve_damage(20, grinder)
        result = combat_engine.request_move(grinder, 50, 0)
        assert result.locked_steering
        assert grinder.position.x == pytest.approx(0, abs=1e-9)


class TestConcurrency:
    """Tests for serialized access."""

    def test_parallel_moves_never_overspend(self, make_vehicle):
        engine = TacticalEngine(EngineConfig(initial_phase="combat", initial_scale="point_blank"))
        ride = make_vehicle()  # 120 ft at point-blank

        def mover():
            for _ in range(20):
                engine.request_move(ride, 5, 0)

        threads = [threading.Thread(target=mover) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert engine.ledger.used(ride) == pytest.approx(120)
        assert ride.position.x == pytest.approx(120)
