"""
Unit tests for serialization.py module.

Tests snapshot persistence and result export.
"""

import json
from datetime import date

import pandas as pd
import pytest

from finplan.config import MonteCarloConfig
from finplan.exceptions import ConfigurationError, ValidationError
from finplan.monte_carlo import simulate
from finplan.projection import project
from finplan.serialization import (
    SCHEMA_VERSION,
    load_snapshot,
    monte_carlo_to_dict,
    projection_to_dict,
    save_result,
    save_snapshot,
    snapshot_from_dict,
    snapshot_to_dict,
)


class TestSnapshotFromDict:
    """Test building domain snapshots from documents."""

    def test_dashboard_document(self, snapshot_document):
        snapshot = snapshot_from_dict(snapshot_document)

        assert snapshot.assumptions.start_date == date(2025, 1, 1)
        assert snapshot.assumptions.tax_rate_effective == 0.25
        assert snapshot.cash_account().id == "checking"
        assert snapshot.accounts[1].contribution_monthly == 250
        assert snapshot.incomes[0].growth_annual == 0.03
        assert snapshot.goals[0].target_date == date(2025, 12, 1)

    def test_invalid_document_raises_validation_error(self, snapshot_document):
        del snapshot_document["assumptions"]["startDateISO"]
        with pytest.raises(ValidationError, match="Invalid snapshot"):
            snapshot_from_dict(snapshot_document)

    def test_schema_version_mismatch_warns(self, snapshot_document):
        snapshot_document["schema_version"] = "0.0.1"
        with pytest.warns(UserWarning, match="schema version"):
            snapshot_from_dict(snapshot_document)

    def test_projection_matches_hand_computation(self, snapshot_document):
        """Salary 5,000, 25% tax, rent 1,500, 250 into the ETF."""
        first = project(snapshot_from_dict(snapshot_document)).points[0]
        assert first.cash_flow == pytest.approx(5_000 * 0.75 - 1_500 - 250)


class TestSnapshotToDict:
    """Test exporting domain snapshots."""

    def test_camel_case_output(self, full_snapshot):
        data = snapshot_to_dict(full_snapshot)

        assert data["schemaVersion"] == SCHEMA_VERSION
        assert data["assumptions"]["startDateISO"] == "2025-01-01"
        assert data["accounts"][1]["type"] == "investment"
        assert data["accounts"][1]["expectedReturnAnnual"] == 0.06
        assert data["expenses"][1]["startDateISO"] == "2025-06-15"
        assert data["goals"][0]["targetDateISO"] == "2026-12-01"

    def test_unset_values_omitted(self, full_snapshot):
        data = snapshot_to_dict(full_snapshot)
        assert "interestRateAnnual" not in data["accounts"][0]

    def test_document_reloads_to_equal_snapshot(self, full_snapshot):
        assert snapshot_from_dict(snapshot_to_dict(full_snapshot)) == full_snapshot


class TestSnapshotFiles:
    """Test load_snapshot / save_snapshot."""

    def test_load(self, snapshot_file):
        snapshot = load_snapshot(snapshot_file)
        assert len(snapshot.accounts) == 2

    def test_save_then_load(self, full_snapshot, tmp_path):
        path = tmp_path / "nested" / "snapshot.json"
        save_snapshot(full_snapshot, path)

        assert path.exists()
        assert load_snapshot(path) == full_snapshot

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="Cannot read"):
            load_snapshot(tmp_path / "missing.json")

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(ConfigurationError, match="not valid JSON"):
            load_snapshot(path)

    def test_non_object_json(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        with pytest.raises(ConfigurationError, match="JSON object"):
            load_snapshot(path)


class TestResultExport:
    """Test projection and Monte Carlo export."""

    def test_projection_to_dict(self, basic_snapshot):
        data = projection_to_dict(project(basic_snapshot))

        assert data["schema_version"] == SCHEMA_VERSION
        assert len(data["points"]) == 12
        assert data["points"][0]["date"] == "2025-01-01"
        assert data["points"][0]["cash_flow"] == pytest.approx(2_250.0)
        assert data["month_labels"][0] == "2025-01"
        assert "checking" in data["by_account_balances"]
        json.dumps(data)

    def test_monte_carlo_to_dict(self, full_snapshot):
        result = simulate(full_snapshot, iterations=10, config=MonteCarloConfig(seed=5))
        data = monte_carlo_to_dict(result)

        assert data["iterations"] == 10
        assert data["seed"] == 5
        assert len(data["scenarios"]) == 36
        assert set(data["scenarios"][0]) == {"date", "p10", "p50", "p90"}
        assert set(data["goal_success_rates"]) == {"cushion", "stretch"}
        json.dumps(data)

    def test_save_projection_json(self, basic_snapshot, tmp_path):
        path = tmp_path / "out" / "projection.json"
        save_result(project(basic_snapshot), path)

        with open(path) as f:
            data = json.load(f)
        assert data["summary"]["starting_value"] == pytest.approx(12_250.0)

    def test_save_projection_csv(self, basic_snapshot, tmp_path):
        path = tmp_path / "projection.csv"
        save_result(project(basic_snapshot), path)

        frame = pd.read_csv(path, index_col="date", parse_dates=True)
        assert len(frame) == 12
        assert frame["cash_flow"].iloc[0] == pytest.approx(2_250.0)

    def test_save_monte_carlo_csv(self, basic_snapshot, tmp_path):
        path = tmp_path / "bands.csv"
        save_result(simulate(basic_snapshot, iterations=5, config=MonteCarloConfig(seed=1)), path)

        frame = pd.read_csv(path, index_col="date")
        assert list(frame.columns) == ["p10", "p50", "p90"]

    def test_save_unknown_type(self, tmp_path):
        with pytest.raises(TypeError):
            save_result({"points": []}, tmp_path / "x.json")
