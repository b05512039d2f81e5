"""
Type definitions for finplan.

Purpose
-------
TypedDict definitions for the JSON documents produced by
:mod:`finplan.serialization`. They document the exported structure and give
IDE autocompletion to code consuming saved results.

Usage
-----
>>> from finplan.types import ProjectionPointDict
>>> point: ProjectionPointDict = {
...     "date": "2025-01-01", "net_worth": 12_250.0, "total_assets": 12_250.0,
...     "total_liabilities": 0.0, "cash_flow": 2_250.0, "income": 5_000.0,
...     "expenses": 1_500.0, "taxes": 1_250.0,
... }

Type Definitions
----------------
ProjectionPointDict
    One month of a deterministic projection.

ProjectionResultDict
    Full projection export: points, per-account balances, summary.

ScenarioDict
    One month of Monte Carlo percentile bands: {"date", "p10", "p50", "p90"}

MonteCarloResultDict
    Monte Carlo export: scenarios, success rates, iterations, seed.
"""

from typing import Dict, List, Optional

from typing_extensions import NotRequired, TypedDict

__all__ = [
    "ProjectionPointDict",
    "ProjectionSummaryDict",
    "ProjectionResultDict",
    "ScenarioDict",
    "MonteCarloResultDict",
]


class ProjectionPointDict(TypedDict):
    """
    One simulated month.

    Attributes
    ----------
    date : str
        ISO first-of-month date.
    net_worth, total_assets, total_liabilities : float
        Balance-sheet totals after the month's step.
    cash_flow : float
        Net cash moved into the cash bucket.
    income, expenses, taxes : float
        Cash-flow components of the month.
    """

    date: str
    net_worth: float
    total_assets: float
    total_liabilities: float
    cash_flow: float
    income: float
    expenses: float
    taxes: float
    contributions: NotRequired[float]
    loan_payments: NotRequired[float]
    stock_portfolio_value: NotRequired[Optional[float]]


class ProjectionSummaryDict(TypedDict):
    starting_value: float
    ending_value: float
    total_gain: float
    total_contributions: float
    annualized_growth: float


class ProjectionResultDict(TypedDict):
    schema_version: str
    points: List[ProjectionPointDict]
    by_account_balances: Dict[str, List[float]]
    month_labels: List[str]
    summary: ProjectionSummaryDict


class ScenarioDict(TypedDict):
    date: str
    p10: float
    p50: float
    p90: float


class MonteCarloResultDict(TypedDict):
    """
    Monte Carlo export.

    Attributes
    ----------
    success_rate : float
        Minimum success rate across goals inside the horizon.
    goal_success_rates : dict[str, float]
        Per-goal success rates keyed by goal id.
    seed : int or None
        Root entropy; reproduces the run when passed back as seed.
    """

    schema_version: str
    scenarios: List[ScenarioDict]
    success_rate: float
    goal_success_rates: Dict[str, float]
    iterations: int
    seed: Optional[int]
