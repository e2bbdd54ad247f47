"""
Pytest fixtures for the Infernal Chase test suite.

Provides dice fixtures, scripted d20 sequences and ready-made vehicles
and creatures.
"""

import pytest
from typing import Optional

from infernal_chase.data_models import (
    DiceRoller,
    Creature,
    Faction,
    Position,
    StatBlock,
    Vehicle,
    VehicleTemplate,
)
from infernal_chase.engine import EngineConfig, TacticalEngine
from infernal_chase.observability.replay import ReplaySession
from infernal_chase.observability.run_log import get_run_log, reset_run_log
from infernal_chase.vehicle_templates import DEMON_GRINDER, DEVILS_RIDE, TORMENTOR


# =============================================================================
# GLOBAL STATE
# =============================================================================


@pytest.fixture(autouse=True)
def reset_global_state():
    """The run log, roll log and replay session are process-wide singletons."""
    reset_run_log()
    get_run_log().set_round_provider(None)
    DiceRoller.clear_roll_log()
    DiceRoller.set_replay_session(None)
    yield
    DiceRoller.set_replay_session(None)
    get_run_log().set_round_provider(None)


# =============================================================================
# DICE FIXTURES
# =============================================================================


@pytest.fixture
def seeded_dice():
    """Provide a seeded DiceRoller for reproducible tests."""
    DiceRoller.clear_roll_log()
    DiceRoller.set_seed(42)
    yield DiceRoller()
    DiceRoller.clear_roll_log()


@pytest.fixture
def clean_dice():
    """Provide a clean DiceRoller without seed."""
    DiceRoller.clear_roll_log()
    yield DiceRoller()
    DiceRoller.clear_roll_log()


@pytest.fixture
def scripted_d20():
    """Feed a fixed sequence of d20 results through the dice roller."""

    def _script(*totals: int) -> ReplaySession:
        session = ReplaySession.from_totals(list(totals))
        DiceRoller.set_replay_session(session)
        return session

    return _script


# =============================================================================
# ENTITY FIXTURES
# =============================================================================


@pytest.fixture
def make_vehicle():
    """Factory for vehicles; defaults to a Devil's Ride at the origin."""

    def _make(
        vehicle_id: str = "v1",
        template: VehicleTemplate = DEVILS_RIDE,
        faction: Faction = Faction.PARTY,
        x: float = 0.0,
        y: float = 0.0,
        facing: float = 0.0,
        current_speed: Optional[int] = None,
        current_hp: Optional[int] = None,
    ) -> Vehicle:
        return Vehicle(
            id=vehicle_id,
            name=vehicle_id.title(),
            template=template,
            faction=faction,
            position=Position(x, y),
            facing=facing,
            current_speed=current_speed,
            current_hp=current_hp,
        )

    return _make


@pytest.fixture
def make_creature():
    """Factory for creatures standing on the battlefield."""

    def _make(
        creature_id: str = "c1",
        creature_type: str = "pc",
        x: Optional[float] = 0.0,
        y: Optional[float] = 0.0,
        walk_speed: Optional[int] = None,
        current_hp: int = 10,
        vehicle_id: Optional[str] = None,
        zone_id: Optional[str] = None,
    ) -> Creature:
        position = Position(x, y) if x is not None and y is not None else None
        return Creature(
            id=creature_id,
            name=creature_id.title(),
            statblock=StatBlock(name=creature_id, type=creature_type, walk_speed=walk_speed),
            current_hp=current_hp,
            position=position,
            vehicle_id=vehicle_id,
            zone_id=zone_id,
        )

    return _make


@pytest.fixture
def tormentor(make_vehicle):
    """An enemy Tormentor at the origin facing north."""
    return make_vehicle("tormentor", template=TORMENTOR, faction=Faction.ENEMY)


@pytest.fixture
def grinder(make_vehicle):
    """An enemy Demon Grinder at the origin facing north."""
    return make_vehicle("grinder", template=DEMON_GRINDER, faction=Faction.ENEMY)


@pytest.fixture
def engine():
    """A fresh engine in setup at tactical scale."""
    return TacticalEngine(EngineConfig())


@pytest.fixture
def combat_engine():
    """A fresh engine already in combat round 1."""
    eng = TacticalEngine(EngineConfig())
    eng.start_combat()
    return eng
