"""General utilities for finplan

Contents
--------
- Validation helpers
- Rate conversion (annual to monthly, compounded)
- Calendar helpers (month_start, add_months, months_between, month_index)
- Statistics helpers (column_percentiles, annualized_return)
"""

from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

import numpy as np
import pandas as pd

from .constants import MONTHS_PER_YEAR
from .exceptions import ValidationError

__all__ = [
    # Validation
    "check_non_negative",
    # Rates
    "annual_to_monthly",
    # Calendar
    "month_start",
    "add_months",
    "months_between",
    "month_label",
    "month_index",
    # Statistics
    "column_percentiles",
    "annualized_return",
]


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------

def check_non_negative(name: str, value: float) -> None:
    """Raise if *value* is negative (strict)."""
    if value < 0:
        raise ValidationError(f"{name} must be non-negative (got {value}).")


# ---------------------------------------------------------------------------
# Rate conversion (compounded)
# ---------------------------------------------------------------------------

def annual_to_monthly(r_annual: float) -> float:
    """Convert an annual rate to the equivalent compounded monthly rate.

    Uses: (1 + r_a) ** (1/12) - 1. Rates at or below -100% are clamped to a
    total loss (-1.0) so that random draws never produce complex/NaN values.
    """
    if r_annual <= -1.0:
        return -1.0
    return float((1.0 + r_annual) ** (1.0 / MONTHS_PER_YEAR) - 1.0)


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------

def month_start(d: date) -> date:
    """Return the first day of the month containing *d*."""
    return date(d.year, d.month, 1)


def add_months(d: date, months: int) -> date:
    """Return the first-of-month date *months* calendar months after *d*."""
    total = d.year * MONTHS_PER_YEAR + (d.month - 1) + int(months)
    return date(total // MONTHS_PER_YEAR, total % MONTHS_PER_YEAR + 1, 1)


def months_between(start: date, end: date) -> int:
    """
    Calendar-month offset from *start* to *end* (day of month ignored).

    Can be negative if *end* falls in an earlier month than *start*.

    Examples
    --------
    >>> months_between(date(2025, 1, 31), date(2025, 2, 1))
    1
    >>> months_between(date(2025, 3, 1), date(2024, 12, 15))
    -3
    """
    return (end.year - start.year) * MONTHS_PER_YEAR + (end.month - start.month)


def month_label(d: date) -> str:
    """Return the ``YYYY-MM`` label of *d*."""
    return f"{d.year:04d}-{d.month:02d}"


def month_index(start: Optional[date], months: int) -> pd.DatetimeIndex:
    """Construct a first-of-month DatetimeIndex for *months* periods.

    If *start* is None, uses the current month as the first period.
    """
    if months <= 0:
        return pd.DatetimeIndex([], dtype="datetime64[ns]")
    if start is None:
        today = pd.Timestamp.today().normalize()
        first = pd.Timestamp(today.year, today.month, 1)
    else:
        first = pd.Timestamp(start.year, start.month, 1)
    return pd.date_range(start=first, periods=months, freq="MS")


# ---------------------------------------------------------------------------
# Statistics helpers
# ---------------------------------------------------------------------------

def column_percentiles(samples: np.ndarray, levels: Sequence[float]) -> np.ndarray:
    """
    Percentiles of every column of a 2-D (n_samples, n_columns) matrix.

    Levels are fractions in [0, 1]. Uses numpy's default linear rule, i.e.
    index = (n - 1) * p interpolated between the neighbouring order
    statistics.

    Returns
    -------
    np.ndarray
        Shape (len(levels), n_columns). All zeros when there are no samples.

    Examples
    --------
    >>> column_percentiles(np.array([[1.0], [2.0], [3.0], [4.0]]), (0.5,))
    array([[2.5]])
    """
    samples = np.asarray(samples, dtype=float)
    if samples.ndim != 2:
        raise ValueError(f"samples must be 2-D, got shape {samples.shape}.")
    if samples.shape[0] == 0:
        return np.zeros((len(levels), samples.shape[1]), dtype=float)
    return np.quantile(samples, np.asarray(levels, dtype=float), axis=0)


def annualized_return(start_value: float, end_value: float, years: float) -> float:
    """Compound annual growth rate between two values.

    Returns 0.0 whenever the growth is undefined (non-positive start or end,
    or a non-positive number of years).
    """
    if start_value <= 0 or end_value <= 0 or years <= 0:
        return 0.0
    return float((end_value / start_value) ** (1.0 / years) - 1.0)
