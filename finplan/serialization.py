"""
Serialization module for finplan snapshots and results.

Purpose
-------
JSON persistence for finance snapshots (the projection input) and for
projection / Monte Carlo results, so that runs can be saved, shared and
compared across versions.

Supports:
- FinanceSnapshot <-> dict / JSON file (validated through SnapshotConfig,
  camelCase dashboard exports accepted)
- ProjectionResult -> dict / JSON / CSV
- MonteCarloResult -> dict / JSON / CSV

Design Principles
-----------------
- Type-safe: input always passes through the Pydantic schemas
- Human-readable: indented JSON with ISO dates
- Reproducible: Monte Carlo exports include the root seed
- Backward compatible: documents carry a schema version; mismatches warn

Example
-------
>>> from pathlib import Path
>>> from finplan.serialization import load_snapshot, save_result
>>> from finplan.projection import project
>>>
>>> snapshot = load_snapshot(Path("household.json"))
>>> save_result(project(snapshot), Path("out/projection.csv"))
"""

from __future__ import annotations

import json
import logging
import warnings
from pathlib import Path
from typing import Any, Dict, Mapping, Union

from pydantic import ValidationError as PydanticValidationError

from .config import (
    AccountConfig,
    AssumptionsConfig,
    ExpenseItemConfig,
    GoalConfig,
    IncomeItemConfig,
    SnapshotConfig,
)
from .exceptions import ConfigurationError, ValidationError
from .models import (
    Account,
    Assumptions,
    ExpenseItem,
    FinanceSnapshot,
    FinancialGoal,
    IncomeItem,
)
from .monte_carlo import MonteCarloResult
from .projection import ProjectionResult
from .types import MonteCarloResultDict, ProjectionResultDict

__all__ = [
    "SCHEMA_VERSION",
    "snapshot_from_config",
    "snapshot_from_dict",
    "snapshot_to_dict",
    "load_snapshot",
    "save_snapshot",
    "projection_to_dict",
    "monte_carlo_to_dict",
    "save_result",
]

logger = logging.getLogger(__name__)

Result = Union[ProjectionResult, MonteCarloResult]


# ---------------------------------------------------------------------------
# Schema Version
# ---------------------------------------------------------------------------

SCHEMA_VERSION = "0.1.0"


def _check_schema_version(data: Mapping[str, Any]) -> None:
    version = data.get("schema_version", data.get("schemaVersion"))
    if version is not None and version != SCHEMA_VERSION:
        warnings.warn(
            f"Snapshot schema version {version} differs from current "
            f"version {SCHEMA_VERSION}. May encounter compatibility issues.",
            UserWarning,
        )


# ---------------------------------------------------------------------------
# Snapshot Serialization
# ---------------------------------------------------------------------------

def snapshot_from_config(config: SnapshotConfig) -> FinanceSnapshot:
    """Build the domain snapshot from a validated SnapshotConfig."""
    a = config.assumptions
    assumptions = Assumptions(
        start_date=a.start_date,
        projection_years=a.projection_years,
        inflation_annual=a.inflation_annual,
        tax_rate_effective=a.tax_rate_effective,
        currency=a.currency,
    )
    accounts = [
        Account(
            id=acc.id,
            kind=acc.kind,
            balance=acc.balance,
            name=acc.name,
            expected_return_annual=acc.expected_return_annual,
            volatility_annual=acc.volatility_annual,
            contribution_monthly=acc.contribution_monthly,
            interest_rate_annual=acc.interest_rate_annual,
            min_payment_monthly=acc.min_payment_monthly,
        )
        for acc in config.accounts
    ]
    incomes = [IncomeItem(**item.model_dump()) for item in config.incomes]
    expenses = [ExpenseItem(**item.model_dump()) for item in config.expenses]
    goals = [FinancialGoal(**goal.model_dump()) for goal in config.goals]
    return FinanceSnapshot(
        assumptions=assumptions,
        accounts=accounts,
        incomes=incomes,
        expenses=expenses,
        goals=goals,
    )


def snapshot_from_dict(data: Mapping[str, Any]) -> FinanceSnapshot:
    """
    Create a FinanceSnapshot from its dictionary representation.

    Parameters
    ----------
    data : mapping
        Snapshot document; snake_case or camelCase keys.

    Returns
    -------
    FinanceSnapshot

    Raises
    ------
    ValidationError
        If the document does not match the snapshot schema.
    """
    _check_schema_version(data)
    try:
        config = SnapshotConfig.model_validate(dict(data))
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid snapshot: {e}") from e
    return snapshot_from_config(config)


def snapshot_to_dict(snapshot: FinanceSnapshot) -> Dict[str, Any]:
    """
    Convert a FinanceSnapshot to a JSON-ready dictionary.

    Keys use the camelCase export format so that the output can be fed
    back to :func:`snapshot_from_dict` or to the dashboard unchanged.
    """
    a = snapshot.assumptions
    config = SnapshotConfig(
        schema_version=SCHEMA_VERSION,
        assumptions=AssumptionsConfig(
            start_date=a.start_date,
            projection_years=a.projection_years,
            inflation_annual=a.inflation_annual,
            tax_rate_effective=a.tax_rate_effective,
            currency=a.currency,
        ),
        accounts=[
            AccountConfig(
                id=acc.id,
                kind=acc.kind,
                balance=acc.balance,
                name=acc.name,
                expected_return_annual=acc.expected_return_annual,
                volatility_annual=acc.volatility_annual,
                contribution_monthly=acc.contribution_monthly,
                interest_rate_annual=acc.interest_rate_annual,
                min_payment_monthly=acc.min_payment_monthly,
            )
            for acc in snapshot.accounts
        ],
        incomes=[_cash_flow_config(IncomeItemConfig, item) for item in snapshot.incomes],
        expenses=[_cash_flow_config(ExpenseItemConfig, item) for item in snapshot.expenses],
        goals=[
            GoalConfig(
                id=g.id,
                name=g.name,
                target_amount=g.target_amount,
                target_date=g.target_date,
                current_amount=g.current_amount,
                category=g.category,
                priority=g.priority,
            )
            for g in snapshot.goals
        ],
    )
    return config.model_dump(mode="json", by_alias=True, exclude_none=True)


def _cash_flow_config(cls, item):
    return cls(
        id=item.id,
        name=item.name,
        amount=item.amount,
        frequency=item.frequency,
        start_date=item.start_date,
        end_date=item.end_date,
        growth_annual=item.growth_annual,
    )


def load_snapshot(path: Path) -> FinanceSnapshot:
    """
    Load a FinanceSnapshot from a JSON file.

    Raises
    ------
    ConfigurationError
        If the file cannot be read or is not valid JSON.
    ValidationError
        If the JSON does not describe a valid snapshot.

    Examples
    --------
    >>> snapshot = load_snapshot(Path("household.json"))
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read snapshot file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Snapshot file {path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Snapshot file {path} must contain a JSON object, got {type(data).__name__}."
        )
    logger.debug("Loaded snapshot document from %s", path)
    return snapshot_from_dict(data)


def save_snapshot(snapshot: FinanceSnapshot, path: Path) -> None:
    """Save a FinanceSnapshot as indented JSON (parent dirs created)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(snapshot_to_dict(snapshot), f, indent=2)


# ---------------------------------------------------------------------------
# Result Serialization
# ---------------------------------------------------------------------------

def projection_to_dict(result: ProjectionResult) -> ProjectionResultDict:
    """Convert a ProjectionResult to a JSON-ready dictionary."""
    summary = result.summary()
    return {
        "schema_version": SCHEMA_VERSION,
        "points": [
            {
                "date": p.date.isoformat(),
                "net_worth": p.net_worth,
                "total_assets": p.total_assets,
                "total_liabilities": p.total_liabilities,
                "cash_flow": p.cash_flow,
                "income": p.income,
                "expenses": p.expenses,
                "taxes": p.taxes,
                "contributions": p.contributions,
                "loan_payments": p.loan_payments,
                "stock_portfolio_value": p.stock_portfolio_value,
            }
            for p in result.points
        ],
        "by_account_balances": {k: list(v) for k, v in result.by_account_balances.items()},
        "month_labels": list(result.month_labels),
        "summary": {
            "starting_value": summary.starting_value,
            "ending_value": summary.ending_value,
            "total_gain": summary.total_gain,
            "total_contributions": summary.total_contributions,
            "annualized_growth": summary.annualized_growth,
        },
    }


def monte_carlo_to_dict(result: MonteCarloResult) -> MonteCarloResultDict:
    """Convert a MonteCarloResult to a JSON-ready dictionary."""
    return {
        "schema_version": SCHEMA_VERSION,
        "scenarios": [
            {"date": s.date.isoformat(), "p10": s.p10, "p50": s.p50, "p90": s.p90}
            for s in result.scenarios
        ],
        "success_rate": result.success_rate,
        "goal_success_rates": dict(result.goal_success_rates),
        "iterations": result.iterations,
        "seed": result.seed,
    }


def save_result(result: Result, path: Path) -> None:
    """
    Save a projection or Monte Carlo result.

    The format follows the file suffix: ``.csv`` writes the monthly table
    (``to_frame()``), anything else writes the JSON document.

    Examples
    --------
    >>> save_result(simulate(snapshot), Path("out/bands.csv"))
    >>> save_result(project(snapshot), Path("out/projection.json"))
    """
    path = Path(path)
    if isinstance(result, ProjectionResult):
        document: Dict[str, Any] = dict(projection_to_dict(result))
    elif isinstance(result, MonteCarloResult):
        document = dict(monte_carlo_to_dict(result))
    else:
        raise TypeError(f"Cannot save result of type {type(result).__name__}.")

    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() == ".csv":
        result.to_frame().to_csv(path)
    else:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(document, f, indent=2)
    logger.info("Saved %s to %s", type(result).__name__, path)
