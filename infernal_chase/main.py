"""
Infernal Chase - command line entry point.

Runs a scripted chase between two war machines through the TacticalEngine
and prints the resulting run log. Useful for checking rules changes end to
end and for producing replay files.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from infernal_chase.data_models import DiceRoller, Faction, Position, Vehicle
from infernal_chase.engine import EngineConfig, TacticalEngine
from infernal_chase.geometry import distance
from infernal_chase.mishaps.mishap_table import repair_description
from infernal_chase.observability.replay import ReplaySession
from infernal_chase.observability.run_log import get_run_log, reset_run_log
from infernal_chase.scale.scale_resolver import format_distance
from infernal_chase.vehicle_templates import VEHICLE_TEMPLATES, get_template


def setup_logging(verbose: bool = False) -> None:
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


logger = logging.getLogger(__name__)


# =============================================================================
# DEMO CHASE
# =============================================================================


def run_demo_chase(
    config: EngineConfig,
    start_distance: float = 1500.0,
    rounds: int = 3,
    damage_per_round: int = 25,
    pursuer_template: str = "devils_ride",
    quarry_template: str = "demon_grinder",
    complications: bool = True,
) -> TacticalEngine:
    """
    Pursuer closes on the quarry each round and lands one hit.

    With complications on, a complication is rolled at the end of every
    round and both machines make a plain d20 check against it.

    Returns:
        The engine after the chase, for inspection
    """
    engine = TacticalEngine(config)
    pursuer = Vehicle(
        id="pursuer",
        name="Pursuer",
        template=get_template(pursuer_template),
        faction=Faction.PARTY,
        position=Position(0, start_distance),
        facing=0,
    )
    quarry = Vehicle(
        id="quarry",
        name="Quarry",
        template=get_template(quarry_template),
        faction=Faction.ENEMY,
        position=Position(0, 0),
        facing=0,
    )
    vehicles = [pursuer, quarry]

    tier = engine.resolve_scale(vehicles)
    print(f"Setup: {format_distance(start_distance)} apart, scale {tier.display_name}")
    engine.start_combat()

    for round_index in range(rounds):
        if round_index > 0:
            engine.next_round(vehicles)
        # Drive straight at the quarry, stopping 20 ft short; the ledger trims to budget
        dy = min(0.0, quarry.position.y - pursuer.position.y + 20)
        result = engine.request_move(pursuer, 0, dy)
        tier = engine.resolve_scale(vehicles)
        gap = distance(pursuer.position, quarry.position)
        print(
            f"Round {engine.round_number}: pursuer moved {format_distance(result.feet_moved)}, "
            f"gap {format_distance(gap)}, scale {tier.display_name}"
        )

        _land_hit(engine, quarry, damage_per_round)
        if complications:
            _end_of_round_complication(engine, vehicles)

    return engine


def _land_hit(engine: TacticalEngine, quarry: Vehicle, damage: int) -> None:
    resolution = engine.resolve_damage(damage, quarry)
    if resolution.absorbed:
        print(f"  Hit for {damage}: absorbed by armor")
        return
    quarry.current_hp = max(0, (quarry.current_hp or 0) + resolution.hp_delta)
    print(f"  Hit for {damage}: quarry at {quarry.current_hp} HP")
    if resolution.mishap_roll:
        mishap = resolution.mishap_roll.mishap
        print(
            f"  MISHAP ({resolution.mishap_roll.roll}): {mishap.name} - "
            f"{repair_description(mishap)}"
        )
    elif resolution.mishap_triggered:
        print("  Mishap triggered but no valid mishap available")


def _end_of_round_complication(engine: TacticalEngine, vehicles: list[Vehicle]) -> None:
    active = engine.roll_complication(vehicles)
    if active is None:
        return
    print(f"  COMPLICATION ({active.roll_range}): {active.complication.name}")
    for vehicle in vehicles:
        check = engine.resolve_complication_check(active, vehicle)
        outcome = check.status.value
        if check.total is not None:
            outcome += f" with {check.total}"
        if check.speed_modifier:
            outcome += ", speed halved next round"
        print(f"    {vehicle.name}: {outcome}")


# =============================================================================
# ARGUMENTS
# =============================================================================


def parse_arguments(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Infernal Chase - tactical resolution for war machine chases",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m infernal_chase.main                         # Default demo chase
  python -m infernal_chase.main --seed 7 --rounds 5     # Reproducible longer chase
  python -m infernal_chase.main --save-log run.json     # Save the run log
  python -m infernal_chase.main --replay run.json       # Replay recorded dice
        """
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed for dice")
    parser.add_argument(
        "--distance",
        type=float,
        default=1500.0,
        help="Starting distance between the machines in feet (default: 1500)",
    )
    parser.add_argument("--rounds", type=int, default=3, help="Combat rounds to run (default: 3)")
    parser.add_argument(
        "--damage",
        type=int,
        default=25,
        help="Damage dealt to the quarry each round (default: 25)",
    )
    parser.add_argument(
        "--pursuer",
        choices=sorted(VEHICLE_TEMPLATES),
        default="devils_ride",
        help="Pursuer vehicle template",
    )
    parser.add_argument(
        "--quarry",
        choices=sorted(VEHICLE_TEMPLATES),
        default="demon_grinder",
        help="Quarry vehicle template",
    )
    parser.add_argument(
        "--max-mishap-attempts",
        type=int,
        default=20,
        help="Rolls allowed when searching for a valid mishap (default: 20)",
    )
    parser.add_argument(
        "--no-complications",
        action="store_true",
        help="Skip the end-of-round complication rolls",
    )
    parser.add_argument("--save-log", type=Path, default=None, help="Write the run log as JSON")
    parser.add_argument("--replay", type=Path, default=None, help="Replay dice from a saved log")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging")
    return parser.parse_args(argv)


def create_config_from_args(args: argparse.Namespace) -> EngineConfig:
    """Create EngineConfig from parsed arguments."""
    return EngineConfig(
        max_mishap_attempts=args.max_mishap_attempts,
        seed=args.seed,
        verbose=args.verbose,
    )


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI usage."""
    args = parse_arguments(argv)
    config = create_config_from_args(args)
    setup_logging(config.verbose)

    reset_run_log()
    DiceRoller.clear_roll_log()
    session: Optional[ReplaySession] = None
    if args.replay:
        session = ReplaySession.load(str(args.replay))
        DiceRoller.set_replay_session(session)
        logger.info(
            f"Replaying {session.remaining()} recorded rolls from {args.replay} "
            f"(by table: {session.rolls_by_table()})"
        )

    try:
        run_demo_chase(
            config,
            start_distance=args.distance,
            rounds=args.rounds,
            damage_per_round=args.damage,
            pursuer_template=args.pursuer,
            quarry_template=args.quarry,
            complications=not args.no_complications,
        )
    finally:
        DiceRoller.set_replay_session(None)

    run_log = get_run_log()
    print()
    print(run_log.format_log())

    if session is not None and session.drift:
        first = session.drift[0]
        print(
            f"\nReplay drifted {len(session.drift)} time(s); first at roll {first.position}: "
            f"requested {first.requested}, recorded {first.recorded}"
        )

    if args.save_log:
        run_log.save(str(args.save_log))
        print(f"\nRun log saved to {args.save_log}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
