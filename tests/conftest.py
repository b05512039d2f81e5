"""
Pytest configuration and fixtures for the finplan test suite.

Fixtures build small, fully specified snapshots so that expected values
can be computed by hand in the tests that use them.
"""

import json
from datetime import date

import pytest

from finplan.config import MonteCarloConfig
from finplan.models import (
    Account,
    Assumptions,
    ExpenseItem,
    FinanceSnapshot,
    FinancialGoal,
    IncomeItem,
)


# ---------------------------------------------------------------------------
# Date / Assumption Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def start_date() -> date:
    """Standard start date for tests."""
    return date(2025, 1, 1)


@pytest.fixture
def assumptions(start_date) -> Assumptions:
    """One-year horizon, 25% flat tax, no inflation."""
    return Assumptions(
        start_date=start_date,
        projection_years=1,
        inflation_annual=0.0,
        tax_rate_effective=0.25,
    )


@pytest.fixture
def seed() -> int:
    """Standard random seed for reproducibility."""
    return 42


# ---------------------------------------------------------------------------
# Snapshot Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def basic_snapshot(assumptions) -> FinanceSnapshot:
    """
    Cash-only household.

    Cash: 10,000
    Salary: 5,000/month, 3% annual growth
    Rent: 1,500/month, no growth
    """
    return FinanceSnapshot(
        assumptions=assumptions,
        accounts=[Account(id="checking", kind="cash", balance=10_000.0)],
        incomes=[IncomeItem(id="salary", name="Salary", amount=5_000.0, growth_annual=0.03)],
        expenses=[ExpenseItem(id="rent", name="Rent", amount=1_500.0, growth_annual=0.0)],
    )


@pytest.fixture
def full_snapshot(start_date) -> FinanceSnapshot:
    """
    Household with every account kind, a one-off expense and two goals.

    Horizon: 3 years. Every growth rate and return is declared explicitly.
    """
    return FinanceSnapshot(
        assumptions=Assumptions(
            start_date=start_date,
            projection_years=3,
            inflation_annual=0.02,
            tax_rate_effective=0.30,
        ),
        accounts=[
            Account(id="checking", kind="cash", balance=5_000.0),
            Account(
                id="etf",
                kind="investment",
                balance=20_000.0,
                expected_return_annual=0.06,
                volatility_annual=0.18,
                contribution_monthly=300.0,
            ),
            Account(
                id="flat",
                kind="property",
                balance=250_000.0,
                expected_return_annual=0.02,
                volatility_annual=0.05,
            ),
            Account(
                id="mortgage",
                kind="loan",
                balance=180_000.0,
                interest_rate_annual=0.035,
                min_payment_monthly=1_100.0,
            ),
        ],
        incomes=[
            IncomeItem(id="salary", amount=6_000.0, growth_annual=0.02),
            IncomeItem(id="bonus", amount=3_000.0, frequency="yearly", growth_annual=0.0),
        ],
        expenses=[
            ExpenseItem(id="living", amount=2_000.0, growth_annual=0.02),
            ExpenseItem(
                id="car",
                amount=12_000.0,
                frequency="once",
                start_date=date(2025, 6, 15),
                growth_annual=0.0,
            ),
        ],
        goals=[
            FinancialGoal(id="cushion", target_amount=100_000.0, target_date=date(2026, 12, 1)),
            FinancialGoal(id="stretch", target_amount=200_000.0, target_date=date(2027, 12, 1)),
        ],
    )


@pytest.fixture
def mc_config(seed) -> MonteCarloConfig:
    """Small, seeded Monte Carlo configuration."""
    return MonteCarloConfig(iterations=200, seed=seed)


# ---------------------------------------------------------------------------
# File Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def snapshot_document() -> dict:
    """Snapshot as exported by the dashboard (camelCase keys, extra fields)."""
    return {
        "assumptions": {
            "startDateISO": "2025-01-01",
            "projectionYears": 1,
            "inflationAnnual": 0.02,
            "taxRateEffective": 0.25,
            "currency": "EUR",
        },
        "accounts": [
            {"id": "checking", "name": "Checking", "type": "cash", "balance": 10000},
            {
                "id": "etf",
                "name": "World ETF",
                "type": "investment",
                "balance": 15000,
                "expectedReturnAnnual": 0.06,
                "volatilityAnnual": 0.15,
                "contributionMonthly": 250,
            },
        ],
        "incomes": [
            {"id": "salary", "name": "Salary", "amount": 5000, "frequency": "monthly",
             "growthAnnual": 0.03},
        ],
        "expenses": [
            {"id": "rent", "name": "Rent", "amount": 1500, "frequency": "monthly",
             "growthAnnual": 0.0},
        ],
        "goals": [
            {"id": "house", "name": "House deposit", "targetAmount": 40000,
             "targetDateISO": "2025-12-01", "category": "house", "priority": "high"},
        ],
        "stocks": [{"symbol": "VWCE", "shares": 10}],
    }


@pytest.fixture
def snapshot_file(tmp_path, snapshot_document):
    """Snapshot document written to a temporary JSON file."""
    path = tmp_path / "household.json"
    with open(path, "w") as f:
        json.dump(snapshot_document, f)
    return path
