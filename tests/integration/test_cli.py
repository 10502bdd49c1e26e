"""Integration-style tests for the Typer CLI."""

import json
from types import SimpleNamespace
from unittest.mock import patch

import numpy as np
import pandas as pd
import pytest
from typer.testing import CliRunner

from physiosim.cli.main import app
from physiosim.config import AppConfig
from physiosim.contracts.errors import SimulationError
from physiosim.engine import RunContext


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def fake_result():
    series = {"cortisol": np.linspace(5.0, 20.0, 288), "dopamine": np.full(288, 40.0)}
    return SimpleNamespace(
        run_id="abc123",
        runtime_seconds=0.25,
        failed_signals=(),
        series=series,
        get=lambda key: series.get(key, np.zeros(0)),
    )


class TestCLIBasics:
    def test_cli_help(self, runner):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "Physiological signal simulation engine" in result.stdout

    def test_info_command(self, runner):
        with patch("physiosim.cli.main.app_api.list_interventions", return_value={"Supplements": ["caffeine"]}):
            result = runner.invoke(app, ["info"])
        assert result.exit_code == 0
        assert "physiosim v" in result.stdout
        assert "Interventions: 1" in result.stdout

    def test_list_signals_command(self, runner):
        result = runner.invoke(app, ["list-signals", "--group", "metabolic"])
        assert result.exit_code == 0
        assert "glucose" in result.stdout
        assert "insulin" in result.stdout
        assert "cortisol" not in result.stdout

    def test_list_signals_empty_group(self, runner):
        result = runner.invoke(app, ["list-signals", "--group", "nothing"])
        assert result.exit_code == 0
        assert "No signals in group nothing" in result.stdout

    def test_list_interventions_command(self, runner):
        result = runner.invoke(app, ["list-interventions", "--group", "Supplements"])
        assert result.exit_code == 0
        assert "caffeine" in result.stdout

    def test_explain_command(self, runner):
        result = runner.invoke(app, ["explain", "focus", "--top-n", "2"])
        assert result.exit_code == 0
        assert "dopamine" in result.stdout
        assert "ethanol" in result.stdout
        assert "norepi" not in result.stdout

    def test_explain_unknown_meter(self, runner):
        result = runner.invoke(app, ["explain", "zen"])
        assert result.exit_code == 1
        assert "Unknown meter" in result.stdout


class TestConfigValidation:
    def test_validate_valid_config(self, runner, sample_toml_config):
        cfg = AppConfig()
        with patch("physiosim.cli.main.app_api.load_config_from_file", return_value=cfg), \
             patch("physiosim.cli.main.app_api.validate_configuration", return_value=[]):
            result = runner.invoke(app, ["validate", str(sample_toml_config)])
        assert result.exit_code == 0
        assert "valid" in result.stdout

    def test_validate_real_file(self, runner, sample_toml_config):
        result = runner.invoke(app, ["validate", str(sample_toml_config)])
        assert result.exit_code == 0
        assert "valid" in result.stdout

    def test_validate_nonexistent_config(self, runner):
        result = runner.invoke(app, ["validate", "nonexistent.toml"])
        assert result.exit_code == 1
        assert "not found" in result.stdout

    def test_validate_invalid_config(self, runner, temp_dir):
        path = temp_dir / "bad.toml"
        path.write_text("[engine]\ngrid_step_min = -5\n")
        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1


class TestSimulateCommand:
    def test_simulate_with_patched_run(self, runner, fake_result):
        with patch("physiosim.cli.main.app_api.run_simulation", return_value=fake_result) as mock_run:
            result = runner.invoke(app, ["simulate", "--signals", "cortisol,dopamine"])
        assert result.exit_code == 0
        assert "Simulation completed: abc123" in result.stdout
        assert "Signal Summary" in result.stdout
        assert "Meters at minute 720" in result.stdout
        mock_run.assert_called_once()

    def test_toggles_reach_config(self, runner, fake_result):
        with patch("physiosim.cli.main.app_api.run_simulation", return_value=fake_result) as mock_run:
            result = runner.invoke(app, ["simulate", "--no-interventions", "--no-couplings", "--days", "2"])
        assert result.exit_code == 0
        items, cfg = mock_run.call_args.args
        assert items == []
        assert cfg.debug.enable_interventions is False
        assert cfg.debug.enable_couplings is False
        assert cfg.debug.enable_baselines is True
        assert cfg.engine.days == 2

    def test_invalid_step(self, runner):
        result = runner.invoke(app, ["simulate", "--step", "-1"])
        assert result.exit_code == 1
        assert "Invalid configuration override" in result.stdout

    def test_invalid_log_level(self, runner):
        result = runner.invoke(app, ["simulate", "--log-level", "chatty"])
        assert result.exit_code == 1

    def test_engine_logs_after_cli_run(self, runner, fake_result):
        with patch("physiosim.cli.main.app_api.run_simulation", return_value=fake_result):
            result = runner.invoke(app, ["simulate", "--log-level", "debug"])
        assert result.exit_code == 0
        run = RunContext("after-cli")
        assert run.report_failure("glucose", ValueError("x"))

    def test_simulation_error(self, runner):
        with patch("physiosim.cli.main.app_api.run_simulation", side_effect=SimulationError("grid is empty")):
            result = runner.invoke(app, ["simulate"])
        assert result.exit_code == 1
        assert "grid is empty" in result.stdout

    def test_timeline_list(self, runner, temp_dir, fake_result):
        timeline = temp_dir / "timeline.json"
        timeline.write_text(json.dumps([{"id": "c", "key": "caffeine", "start_min": 480, "duration_min": 15}]))
        with patch("physiosim.cli.main.app_api.run_simulation", return_value=fake_result) as mock_run:
            result = runner.invoke(app, ["simulate", "--timeline", str(timeline)])
        assert result.exit_code == 0
        assert "Loaded timeline with 1 items" in result.stdout
        items, _ = mock_run.call_args.args
        assert [item.key for item in items] == ["caffeine"]

    def test_timeline_scenario(self, runner, temp_dir, fake_result):
        snapshot = {
            "name": "Coffee",
            "gridStepMin": 10,
            "items": [{
                "id": "c",
                "start": "2000-01-01T08:00:00",
                "end": "2000-01-01T08:15:00",
                "meta": {"key": "caffeine", "params": {"mg": 100}},
            }],
        }
        timeline = temp_dir / "scenario.json"
        timeline.write_text(json.dumps(snapshot))
        with patch("physiosim.cli.main.app_api.run_simulation", return_value=fake_result) as mock_run:
            result = runner.invoke(app, ["simulate", "--timeline", str(timeline)])
        assert result.exit_code == 0
        assert "Loaded scenario 'Coffee' with 1 items" in result.stdout
        _, cfg = mock_run.call_args.args
        assert cfg.engine.grid_step_min == 10

    @pytest.mark.integration
    def test_simulate_to_csv(self, runner, temp_dir):
        timeline = temp_dir / "timeline.json"
        timeline.write_text(json.dumps([{"id": "c", "key": "caffeine", "start_min": 480, "duration_min": 15}]))
        output = temp_dir / "series.csv"
        result = runner.invoke(app, [
            "simulate", "--timeline", str(timeline), "--step", "10", "--output", str(output),
        ])
        assert result.exit_code == 0
        frame = pd.read_csv(output, index_col="minute")
        assert len(frame) == 144
        assert "cortisol" in frame.columns
        assert "density:Adenosine_A2a" in frame.columns
