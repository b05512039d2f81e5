"""
Global constants for finplan.

Purpose
-------
Centralizes default values and magic numbers used by the projection engine
and the Monte Carlo layer. Using constants instead of hardcoded values keeps
the two layers consistent and makes modeling assumptions explicit.

Usage
-----
>>> from finplan.constants import DEFAULT_ITERATIONS, PERCENTILE_LEVELS
>>>
>>> result = simulate(snapshot, iterations=DEFAULT_ITERATIONS)

Categories
----------
- Time: calendar conversions
- Projection: virtual cash bucket, scenario factors
- Monte Carlo: iteration counts, perturbation defaults, percentile levels
"""

from typing import Dict, Tuple

__all__ = [
    # Time
    "MONTHS_PER_YEAR",
    # Projection
    "VIRTUAL_CASH_ID",
    "SCENARIO_RETURN_FACTORS",
    # Monte Carlo
    "DEFAULT_ITERATIONS",
    "DEFAULT_LOG_EVERY",
    "DEFAULT_RETURN_MEAN",
    "DEFAULT_RETURN_VOLATILITY",
    "DEFAULT_INCOME_GROWTH",
    "DEFAULT_INCOME_GROWTH_SIGMA",
    "DEFAULT_EXPENSE_GROWTH",
    "DEFAULT_EXPENSE_GROWTH_SIGMA",
    "DEFAULT_PORTFOLIO_RETURN_MEAN",
    "DEFAULT_PORTFOLIO_VOLATILITY",
    "PERCENTILE_LEVELS",
]


# =============================================================================
# Time
# =============================================================================

MONTHS_PER_YEAR: int = 12
"""Number of months in a year (used for horizon sizing and rate conversions)."""


# =============================================================================
# Projection Defaults
# =============================================================================

VIRTUAL_CASH_ID: str = "__virtual_cash__"
"""Key of the internal cash bucket used when the snapshot has no cash account."""

SCENARIO_RETURN_FACTORS: Dict[str, float] = {
    "pessimistic": 0.6,
    "base": 1.0,
    "optimistic": 1.4,
}
"""Multipliers applied to expected account returns in three-case projections."""


# =============================================================================
# Monte Carlo Defaults
# =============================================================================

DEFAULT_ITERATIONS: int = 1000
"""Default number of Monte Carlo iterations."""

DEFAULT_LOG_EVERY: int = 100
"""Log a progress line every this many completed iterations."""

DEFAULT_RETURN_MEAN: float = 0.07
"""Annual return mean for investment/property accounts that declare none."""

DEFAULT_RETURN_VOLATILITY: float = 0.15
"""Annual volatility for investment/property accounts that declare none."""

DEFAULT_INCOME_GROWTH: float = 0.03
"""Income growth assumed by the Monte Carlo layer when an item declares none."""

DEFAULT_INCOME_GROWTH_SIGMA: float = 0.01
"""Standard deviation of the income growth perturbation."""

DEFAULT_EXPENSE_GROWTH: float = 0.02
"""Expense growth assumed by the Monte Carlo layer when an item declares none."""

DEFAULT_EXPENSE_GROWTH_SIGMA: float = 0.02
"""Standard deviation of the expense growth perturbation."""

DEFAULT_PORTFOLIO_RETURN_MEAN: float = 0.07
"""Annual return mean used to grow the external portfolio value."""

DEFAULT_PORTFOLIO_VOLATILITY: float = 0.15
"""Annual volatility used to grow the external portfolio value."""


# =============================================================================
# Reporting
# =============================================================================

PERCENTILE_LEVELS: Tuple[float, float, float] = (0.10, 0.50, 0.90)
"""Percentile levels (p10, p50, p90) of the Monte Carlo net-worth bands."""
