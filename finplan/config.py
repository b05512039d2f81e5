"""
Configuration management module for finplan.

Purpose
-------
Pydantic models for type-safe input and parameter management:

- Snapshot schemas (accounts, incomes, expenses, goals, assumptions) that
  validate JSON input before any simulation begins. Keys may be given in
  snake_case or in the dashboard export's camelCase
  (``startDateISO``, ``expectedReturnAnnual``, ``type`` ...). Unknown keys
  such as stock holdings or documents are ignored.
- MonteCarloConfig: iteration count, seed, perturbation parameters and
  worker count of the Monte Carlo layer.
- AppSettings: environment-driven defaults (``FINPLAN_`` prefix).

Design Principles
-----------------
- Type-safe: Pydantic enforces types and validates ranges
- Immutable: Frozen models prevent accidental mutation
- Serializable: model_dump()/model_validate() round-trip to JSON

Example
-------
>>> from finplan.config import MonteCarloConfig, SnapshotConfig
>>> mc = MonteCarloConfig(iterations=2000, seed=7)
>>> mc.model_dump()["iterations"]
2000
>>> cfg = SnapshotConfig.model_validate({
...     "assumptions": {"startDateISO": "2025-01-01", "projectionYears": 1},
...     "accounts": [{"id": "cash", "type": "cash", "balance": 10000}],
... })
>>> cfg.accounts[0].kind
'cash'
"""

from __future__ import annotations

import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    DEFAULT_EXPENSE_GROWTH,
    DEFAULT_EXPENSE_GROWTH_SIGMA,
    DEFAULT_INCOME_GROWTH,
    DEFAULT_INCOME_GROWTH_SIGMA,
    DEFAULT_ITERATIONS,
    DEFAULT_LOG_EVERY,
    DEFAULT_PORTFOLIO_RETURN_MEAN,
    DEFAULT_PORTFOLIO_VOLATILITY,
    DEFAULT_RETURN_MEAN,
    DEFAULT_RETURN_VOLATILITY,
)

__all__ = [
    "AccountConfig",
    "IncomeItemConfig",
    "ExpenseItemConfig",
    "GoalConfig",
    "AssumptionsConfig",
    "SnapshotConfig",
    "MonteCarloConfig",
    "AppSettings",
]


class _InputModel(BaseModel):
    """Base for snapshot schemas: camelCase aliases, unknown keys ignored."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ---------------------------------------------------------------------------
# Snapshot Configuration
# ---------------------------------------------------------------------------

class AccountConfig(_InputModel):
    """
    Configuration for a single account.

    Attributes
    ----------
    id : str
        Unique account identifier.
    kind : str
        "cash", "investment", "loan" or "property" (JSON key ``type``).
    balance : float
        Current balance; outstanding amount for loans.
    expected_return_annual, volatility_annual : float, optional
        Return assumptions for investment/property accounts.
    contribution_monthly : float, optional
        Monthly amount moved from cash into the account.
    interest_rate_annual, min_payment_monthly : float, optional
        Loan terms.

    Examples
    --------
    >>> AccountConfig(id="etf", kind="investment", balance=20_000,
    ...               expected_return_annual=0.06, volatility_annual=0.18)
    """

    id: str
    name: str = ""
    kind: Literal["cash", "investment", "loan", "property"] = Field(alias="type")
    balance: float = 0.0
    expected_return_annual: Optional[float] = Field(default=None, gt=-1.0)
    volatility_annual: Optional[float] = Field(default=None, ge=0.0)
    contribution_monthly: Optional[float] = Field(default=None, ge=0.0)
    interest_rate_annual: Optional[float] = Field(default=None, gt=-1.0)
    min_payment_monthly: Optional[float] = Field(default=None, ge=0.0)

    @model_validator(mode="after")
    def validate_loan_balance(self):
        """Loans carry their outstanding amount as a non-negative balance."""
        if self.kind == "loan" and self.balance < 0:
            raise ValueError(
                f"loan {self.id!r} balance must be >= 0 (outstanding amount), "
                f"got {self.balance}"
            )
        return self


class _CashFlowConfig(_InputModel):
    id: str
    name: str = ""
    amount: float = Field(ge=0.0)
    frequency: Literal["monthly", "yearly", "once"] = "monthly"
    start_date: Optional[datetime.date] = Field(default=None, alias="startDateISO")
    end_date: Optional[datetime.date] = Field(default=None, alias="endDateISO")
    growth_annual: Optional[float] = Field(default=None, gt=-1.0)

    @model_validator(mode="after")
    def validate_window(self):
        """Ensure the activity window does not end before it starts."""
        if (
            self.start_date is not None
            and self.end_date is not None
            and (self.end_date.year, self.end_date.month)
            < (self.start_date.year, self.start_date.month)
        ):
            raise ValueError(
                f"{self.id!r}: endDateISO ({self.end_date}) precedes "
                f"startDateISO ({self.start_date})"
            )
        return self


class IncomeItemConfig(_CashFlowConfig):
    """Configuration for a recurring income item."""


class ExpenseItemConfig(_CashFlowConfig):
    """Configuration for a recurring expense item."""


class GoalConfig(_InputModel):
    """Configuration for a financial goal (net-worth target by a date)."""

    id: str
    name: str = ""
    target_amount: float = Field(ge=0.0)
    target_date: datetime.date = Field(alias="targetDateISO")
    current_amount: float = 0.0
    category: str = "other"
    priority: str = "medium"


class AssumptionsConfig(_InputModel):
    """
    Global simulation assumptions.

    Attributes
    ----------
    start_date : date
        Simulation start (JSON key ``startDateISO``). Required.
    projection_years : float
        Horizon in years. Required.
    inflation_annual : float
        Default expense growth.
    tax_rate_effective : float
        Flat tax rate on gross income, in [0, 1].
    currency : str
        Reporting currency label.
    """

    start_date: datetime.date = Field(alias="startDateISO")
    projection_years: float = Field(ge=0.0, le=100.0)
    inflation_annual: float = Field(default=0.0, gt=-1.0)
    tax_rate_effective: float = Field(default=0.0, ge=0.0, le=1.0)
    currency: str = "EUR"


class SnapshotConfig(_InputModel):
    """
    Complete projection input.

    Examples
    --------
    >>> cfg = SnapshotConfig.model_validate_json(path.read_text())
    >>> [a.id for a in cfg.accounts]
    """

    schema_version: Optional[str] = None
    assumptions: AssumptionsConfig
    accounts: List[AccountConfig] = Field(default_factory=list)
    incomes: List[IncomeItemConfig] = Field(default_factory=list)
    expenses: List[ExpenseItemConfig] = Field(default_factory=list)
    goals: List[GoalConfig] = Field(default_factory=list)

    @field_validator("accounts")
    @classmethod
    def validate_unique_accounts(cls, v):
        """Account ids key the balance series and must be unique."""
        ids = [a.id for a in v]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ValueError(f"duplicate account ids: {duplicates}")
        return v


# ---------------------------------------------------------------------------
# Monte Carlo Configuration
# ---------------------------------------------------------------------------

class MonteCarloConfig(BaseModel):
    """
    Configuration for the Monte Carlo layer.

    Attributes
    ----------
    iterations : int
        Number of perturbed projections (1-100,000).
    seed : int, optional
        Root seed. Every iteration derives its own independent stream from
        it, so results do not depend on ``n_jobs``. None draws fresh entropy.
    return_mean, return_volatility : float
        Fallbacks for investment/property accounts without declared values.
    income_growth_default, income_growth_sigma : float
        Fallback income growth and std-dev of its perturbation.
    expense_growth_default, expense_growth_sigma : float
        Fallback expense growth and std-dev of its perturbation.
    portfolio_return_mean, portfolio_volatility : float
        Annual return draw used to grow the external portfolio value.
    n_jobs : int
        Worker processes; 1 runs serially in the calling thread.
    log_every : int
        Progress is logged every this many iterations.

    Examples
    --------
    >>> config = MonteCarloConfig(iterations=500, seed=42)
    >>> config.income_growth_sigma
    0.01
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    iterations: int = Field(
        default=DEFAULT_ITERATIONS,
        ge=1,
        le=100_000,
        description="Number of Monte Carlo iterations"
    )
    seed: Optional[int] = Field(
        default=None,
        ge=0,
        description="Root random seed for reproducibility"
    )
    return_mean: float = Field(
        default=DEFAULT_RETURN_MEAN,
        description="Annual return of accounts without expectedReturnAnnual"
    )
    return_volatility: float = Field(
        default=DEFAULT_RETURN_VOLATILITY,
        ge=0.0,
        description="Annual volatility of accounts without volatilityAnnual"
    )
    income_growth_default: float = Field(
        default=DEFAULT_INCOME_GROWTH,
        description="Income growth used when an item declares none"
    )
    income_growth_sigma: float = Field(
        default=DEFAULT_INCOME_GROWTH_SIGMA,
        ge=0.0,
        description="Std-dev of the income growth perturbation"
    )
    expense_growth_default: float = Field(
        default=DEFAULT_EXPENSE_GROWTH,
        description="Expense growth used when an item declares none"
    )
    expense_growth_sigma: float = Field(
        default=DEFAULT_EXPENSE_GROWTH_SIGMA,
        ge=0.0,
        description="Std-dev of the expense growth perturbation"
    )
    portfolio_return_mean: float = Field(
        default=DEFAULT_PORTFOLIO_RETURN_MEAN,
        description="Annual return mean of the external portfolio"
    )
    portfolio_volatility: float = Field(
        default=DEFAULT_PORTFOLIO_VOLATILITY,
        ge=0.0,
        description="Annual volatility of the external portfolio"
    )
    n_jobs: int = Field(
        default=1,
        ge=1,
        le=256,
        description="Number of worker processes"
    )
    log_every: int = Field(
        default=DEFAULT_LOG_EVERY,
        ge=1,
        description="Progress logging interval (iterations)"
    )

    def deterministic(self) -> MonteCarloConfig:
        """Copy with every perturbation disabled (zero std-devs)."""
        return self.model_copy(update={
            "return_volatility": 0.0,
            "income_growth_sigma": 0.0,
            "expense_growth_sigma": 0.0,
            "portfolio_volatility": 0.0,
        })


# ---------------------------------------------------------------------------
# Application Settings (Environment Variables)
# ---------------------------------------------------------------------------

class AppSettings(BaseSettings):
    """
    Global application settings loaded from environment variables.

    Supports .env files for local development. Environment variables
    are prefixed with FINPLAN_ (e.g., FINPLAN_LOG_LEVEL=DEBUG).

    Attributes
    ----------
    log_level : str
        Logging level: "DEBUG", "INFO", "WARNING", "ERROR"
    default_iterations : int
        Iterations used by the CLI when ``--iterations`` is not given
    default_seed : int, optional
        Seed used by the CLI when ``--seed`` is not given
    n_jobs : int
        Worker processes used by the CLI when ``--jobs`` is not given

    Examples
    --------
    >>> settings = AppSettings()
    >>> settings.log_level
    'WARNING'
    """

    model_config = SettingsConfigDict(
        env_prefix="FINPLAN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Logging level"
    )
    default_iterations: int = Field(
        default=DEFAULT_ITERATIONS,
        ge=1,
        le=100_000,
        description="Default Monte Carlo iterations for the CLI"
    )
    default_seed: Optional[int] = Field(
        default=None,
        ge=0,
        description="Default random seed for the CLI"
    )
    n_jobs: int = Field(
        default=1,
        ge=1,
        le=256,
        description="Default worker processes for the CLI"
    )
