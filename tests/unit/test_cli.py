"""
Unit tests for CLI module.

Tests command-line interface functionality using Click's testing utilities.
"""

import json

import pandas as pd
import pytest
from click.testing import CliRunner

from finplan import __version__
from finplan.cli import main


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def runner(monkeypatch, tmp_path):
    """CLI test runner isolated from FINPLAN_* settings and .env files."""
    monkeypatch.chdir(tmp_path)
    for var in ("FINPLAN_LOG_LEVEL", "FINPLAN_DEFAULT_ITERATIONS",
                "FINPLAN_DEFAULT_SEED", "FINPLAN_N_JOBS"):
        monkeypatch.delenv(var, raising=False)
    return CliRunner()


@pytest.fixture
def invalid_file(tmp_path):
    path = tmp_path / "invalid.json"
    path.write_text(json.dumps({"accounts": [{"id": "x", "type": "crypto"}]}))
    return path


# ============================================================================
# MAIN GROUP
# ============================================================================

class TestMainGroup:
    """Test the top-level command group."""

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("project", "simulate", "config", "info"):
            assert command in result.output


# ============================================================================
# PROJECT
# ============================================================================

class TestProjectCommand:
    """Test `finplan project`."""

    def test_summary_table(self, runner, snapshot_file):
        result = runner.invoke(main, ["project", "-c", str(snapshot_file)])

        assert result.exit_code == 0, result.output
        assert "Projection Summary" in result.output
        assert "12 months" in result.output

    def test_scenarios_and_target(self, runner, snapshot_file):
        result = runner.invoke(
            main,
            ["project", "-c", str(snapshot_file), "--scenarios", "--target", "30000"],
        )

        assert result.exit_code == 0, result.output
        assert "pessimistic" in result.output
        assert "optimistic" in result.output

    def test_csv_output(self, runner, snapshot_file, tmp_path):
        out = tmp_path / "projection.csv"
        result = runner.invoke(main, ["-q", "project", "-c", str(snapshot_file), "-o", str(out)])

        assert result.exit_code == 0, result.output
        frame = pd.read_csv(out, index_col="date")
        assert len(frame) == 12

    def test_months_option(self, runner, snapshot_file, tmp_path):
        out = tmp_path / "projection.json"
        result = runner.invoke(
            main, ["-q", "project", "-c", str(snapshot_file), "-T", "6", "-o", str(out)]
        )

        assert result.exit_code == 0, result.output
        assert len(json.loads(out.read_text())["points"]) == 6

    def test_invalid_snapshot(self, runner, invalid_file):
        result = runner.invoke(main, ["project", "-c", str(invalid_file)])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(main, ["project", "-c", str(tmp_path / "nope.json")])
        assert result.exit_code != 0


# ============================================================================
# SIMULATE
# ============================================================================

class TestSimulateCommand:
    """Test `finplan simulate`."""

    def test_results_table(self, runner, snapshot_file):
        result = runner.invoke(
            main, ["simulate", "-c", str(snapshot_file), "-n", "50", "--seed", "42"]
        )

        assert result.exit_code == 0, result.output
        assert "Monte Carlo Results" in result.output
        assert "Success Rate" in result.output
        assert "house" in result.output

    def test_json_output_reproducible(self, runner, snapshot_file, tmp_path):
        paths = [tmp_path / "a.json", tmp_path / "b.json"]
        for path in paths:
            result = runner.invoke(
                main,
                ["-q", "simulate", "-c", str(snapshot_file), "-n", "30", "-s", "7", "-o", str(path)],
            )
            assert result.exit_code == 0, result.output

        a, b = (json.loads(p.read_text()) for p in paths)
        assert a == b
        assert a["iterations"] == 30
        assert a["seed"] == 7

    def test_quiet_prints_success_rate(self, runner, snapshot_file):
        result = runner.invoke(main, ["-q", "simulate", "-c", str(snapshot_file), "-n", "5"])
        assert result.exit_code == 0, result.output
        assert "Success Rate:" in result.output

    def test_iterations_from_environment(self, runner, snapshot_file, tmp_path, monkeypatch):
        monkeypatch.setenv("FINPLAN_DEFAULT_ITERATIONS", "8")
        out = tmp_path / "bands.json"
        result = runner.invoke(main, ["-q", "simulate", "-c", str(snapshot_file), "-o", str(out)])

        assert result.exit_code == 0, result.output
        assert json.loads(out.read_text())["iterations"] == 8

    def test_invalid_jobs(self, runner, snapshot_file):
        result = runner.invoke(main, ["simulate", "-c", str(snapshot_file), "--jobs", "0"])
        assert result.exit_code == 1
        assert "Invalid simulation parameters" in result.output


# ============================================================================
# CONFIG
# ============================================================================

class TestConfigCommands:
    """Test `finplan config validate`."""

    def test_validate_valid(self, runner, snapshot_file):
        result = runner.invoke(main, ["config", "validate", str(snapshot_file)])

        assert result.exit_code == 0, result.output
        assert "Snapshot Valid" in result.output
        assert "checking" in result.output

    def test_validate_quiet(self, runner, snapshot_file):
        result = runner.invoke(main, ["-q", "config", "validate", str(snapshot_file)])
        assert result.exit_code == 0
        assert "Configuration is valid" in result.output

    def test_validate_invalid(self, runner, invalid_file):
        result = runner.invoke(main, ["config", "validate", str(invalid_file)])
        assert result.exit_code == 1
        assert "validation failed" in result.output


# ============================================================================
# INFO
# ============================================================================

class TestInfoCommand:
    """Test `finplan info`."""

    def test_info(self, runner):
        result = runner.invoke(main, ["info"])
        assert result.exit_code == 0
        assert "finplan Version" in result.output
        assert "numpy" in result.output
