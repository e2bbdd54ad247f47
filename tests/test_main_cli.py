"""
Tests for the command line entry point.
"""

import json

import pytest

from infernal_chase.data_models import DiceRoller
from infernal_chase.engine import EngineConfig
from infernal_chase.main import create_config_from_args, main, parse_arguments, run_demo_chase
from infernal_chase.observability.run_log import get_run_log
from infernal_chase.scale.scale_resolver import APPROACH


class TestArguments:
    """Tests for argument parsing."""

    def test_defaults(self):
        args = parse_arguments([])
        assert args.seed is None
        assert args.distance == 1500.0
        assert args.rounds == 3
        assert args.pursuer == "devils_ride"
        assert args.quarry == "demon_grinder"

    def test_config_from_args(self):
        args = parse_arguments(["--max-mishap-attempts", "5", "--seed", "9", "-v"])
        config = create_config_from_args(args)
        assert config.max_mishap_attempts == 5
        assert config.seed == 9
        assert config.verbose is True

    def test_complications_on_by_default(self):
        assert parse_arguments([]).no_complications is False
        assert parse_arguments(["--no-complications"]).no_complications is True

    def test_unknown_template_rejected(self):
        with pytest.raises(SystemExit):
            parse_arguments(["--pursuer", "hay_cart"])


class TestDemoChase:
    """Tests for the scripted chase."""

    def test_pursuer_closes_in(self, seeded_dice, capsys):
        engine = run_demo_chase(EngineConfig(), start_distance=1500, rounds=2, complications=False)
        out = capsys.readouterr().out
        assert "Setup: 1500 ft apart, scale Approach" in out
        assert "Round 1: pursuer moved 1200 ft" in out
        assert engine.round_number == 2
        assert engine.current_tier.name.value == "point_blank"

    def test_complication_checks_reported(self, scripted_d20, capsys):
        # mishap roll, complication roll, then one check per machine
        scripted_d20(14, 8, 3, 15)
        run_demo_chase(EngineConfig(), start_distance=1500, rounds=1)
        out = capsys.readouterr().out
        assert "COMPLICATION (8): Uneven Ground" in out
        assert "Pursuer: failed with 3, speed halved next round" in out
        assert "Quarry: passed with 15" in out

    def test_setup_picks_tier_from_distance(self, seeded_dice):
        engine = run_demo_chase(EngineConfig(), start_distance=1500, rounds=0)
        assert engine.current_tier is APPROACH


class TestMain:
    """Tests for main()."""

    def test_seeded_run_succeeds(self, capsys):
        assert main(["--seed", "7", "--rounds", "2"]) == 0
        out = capsys.readouterr().out
        assert "=== Run Log ===" in out
        assert "Seed: 7" in out

    def test_save_and_replay(self, tmp_path, capsys):
        log_path = tmp_path / "run.json"
        assert main(["--seed", "11", "--save-log", str(log_path)]) == 0
        recorded = json.loads(log_path.read_text(encoding="utf-8"))
        recorded_totals = [e["total"] for e in recorded["events"] if e["event_type"] == "roll"]
        capsys.readouterr()

        assert main(["--replay", str(log_path)]) == 0
        replayed_totals = [e.total for e in get_run_log().get_rolls()]
        assert replayed_totals == recorded_totals
        assert not DiceRoller.is_replaying()
