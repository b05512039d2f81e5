"""
Domain model for finplan.

Purpose
-------
Immutable value types describing a household's finances at one point in
time: accounts, recurring incomes and expenses, financial goals, and the
global assumptions that drive a projection. The projection engine and the
Monte Carlo layer only ever read these values; perturbed variants are built
with ``dataclasses.replace`` rather than mutated in place.

Key components
--------------
- Account:
    A holding of kind cash, investment, loan, or property. Loans are
    liabilities, every other kind is an asset.

- IncomeItem / ExpenseItem:
    Recurring cash flows with a frequency (monthly, yearly, once), an
    optional activity window, and an optional annual growth rate.

- FinancialGoal:
    A target net worth to be reached by a target date.

- Assumptions:
    Simulation start date, horizon in years, default inflation, and a flat
    effective tax rate.

- FinanceSnapshot:
    Facade bundling everything above into one explicit input record.

Example
-------
>>> from datetime import date
>>> snapshot = FinanceSnapshot(
...     accounts=[Account(id="checking", kind="cash", balance=10_000.0)],
...     incomes=[IncomeItem(id="salary", amount=5_000.0, growth_annual=0.03)],
...     expenses=[ExpenseItem(id="rent", amount=1_500.0, growth_annual=0.0)],
...     assumptions=Assumptions(start_date=date(2025, 1, 1), projection_years=1,
...                             tax_rate_effective=0.25),
... )
>>> snapshot.cash_account().id
'checking'
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from typing import Iterable, Literal, Optional, Tuple

from .constants import MONTHS_PER_YEAR
from .exceptions import TimeIndexError, ValidationError
from .utils import check_non_negative, month_start, months_between

__all__ = [
    "AccountKind",
    "Frequency",
    "Account",
    "CashFlowItem",
    "IncomeItem",
    "ExpenseItem",
    "FinancialGoal",
    "Assumptions",
    "FinanceSnapshot",
]

AccountKind = Literal["cash", "investment", "loan", "property"]
Frequency = Literal["monthly", "yearly", "once"]

_ACCOUNT_KINDS = ("cash", "investment", "loan", "property")
_FREQUENCIES = ("monthly", "yearly", "once")


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Account:
    """
    Financial holding tracked by the projection engine.

    Parameters
    ----------
    id : str
        Unique identifier; keys the per-account balance series.
    kind : {"cash", "investment", "loan", "property"}
        Loans contribute to liabilities, all other kinds to assets.
    balance : float, default 0.0
        Current balance. For loans this is the outstanding amount (>= 0).
    name : str, default ""
        Display label.
    expected_return_annual : float, optional
        Annual return of investment/property accounts (e.g. 0.05 = 5%).
    volatility_annual : float, optional
        Annual volatility, only read by the Monte Carlo layer.
    contribution_monthly : float, optional
        Fixed amount moved from cash into this account every month.
    interest_rate_annual : float, optional
        Annual interest rate of a loan.
    min_payment_monthly : float, optional
        Minimum monthly loan payment.

    Notes
    -----
    Unset optional fields are ``None``; the engine reads them as 0. The
    Monte Carlo layer distinguishes "unset" from an explicit 0.
    """

    id: str
    kind: AccountKind
    balance: float = 0.0
    name: str = ""
    expected_return_annual: Optional[float] = None
    volatility_annual: Optional[float] = None
    contribution_monthly: Optional[float] = None
    interest_rate_annual: Optional[float] = None
    min_payment_monthly: Optional[float] = None

    def __post_init__(self) -> None:
        if self.kind not in _ACCOUNT_KINDS:
            raise ValidationError(
                f"Account {self.id!r}: kind must be one of {_ACCOUNT_KINDS}, "
                f"got {self.kind!r}."
            )
        if self.kind == "loan":
            check_non_negative(f"Account {self.id!r} loan balance", self.balance)

    @property
    def is_liability(self) -> bool:
        return self.kind == "loan"

    @property
    def is_growth_asset(self) -> bool:
        """True for accounts that compound at ``expected_return_annual``."""
        return self.kind in ("investment", "property")


# ---------------------------------------------------------------------------
# Recurring cash flows
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CashFlowItem:
    """
    Recurring cash-flow entry shared by incomes and expenses.

    Parameters
    ----------
    id : str
        Unique identifier (used to track one-off items per run).
    amount : float
        Nominal amount per period. Must be non-negative.
    frequency : {"monthly", "yearly", "once"}, default "monthly"
        Yearly amounts are spread evenly over 12 months; "once" items are
        counted in their first active month only.
    name : str, default ""
        Display label.
    start_date, end_date : date, optional
        Inclusive activity window, compared at month granularity.
    growth_annual : float, optional
        Annual growth, compounded monthly from the item's start date (or
        from the simulation start when the item has no start date).
    """

    id: str
    amount: float
    frequency: Frequency = "monthly"
    name: str = ""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    growth_annual: Optional[float] = None

    def __post_init__(self) -> None:
        check_non_negative(f"{type(self).__name__} {self.id!r} amount", self.amount)
        if self.frequency not in _FREQUENCIES:
            raise ValidationError(
                f"{type(self).__name__} {self.id!r}: frequency must be one of "
                f"{_FREQUENCIES}, got {self.frequency!r}."
            )
        if (
            self.start_date is not None
            and self.end_date is not None
            and months_between(self.start_date, self.end_date) < 0
        ):
            raise TimeIndexError(
                f"{type(self).__name__} {self.id!r} ends ({self.end_date}) "
                f"before it starts ({self.start_date})."
            )

    @property
    def is_once(self) -> bool:
        return self.frequency == "once"

    def is_active(self, month: date) -> bool:
        """Whether the item is active in the calendar month containing *month*."""
        current = month_start(month)
        if self.start_date is not None and current < month_start(self.start_date):
            return False
        if self.end_date is not None and current > month_start(self.end_date):
            return False
        return True

    def base_monthly_amount(self) -> float:
        """Monthly-equivalent amount before growth."""
        if self.frequency == "yearly":
            return self.amount / MONTHS_PER_YEAR
        return self.amount

    def months_since_start(self, month: date, sim_month: int) -> int:
        """
        Months of growth accrued by *month*.

        Counted from the item's own start date when it has one, otherwise
        from the simulation start (*sim_month*). Never negative.
        """
        if self.start_date is None:
            return max(0, sim_month)
        return max(0, months_between(self.start_date, month))

    def growth_or(self, default: float) -> float:
        return self.growth_annual if self.growth_annual is not None else default


@dataclass(frozen=True)
class IncomeItem(CashFlowItem):
    """Gross (pre-tax) income stream. Growth defaults to 0 when unset."""


@dataclass(frozen=True)
class ExpenseItem(CashFlowItem):
    """Expense stream. Growth defaults to the inflation assumption when unset."""


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FinancialGoal:
    """
    Net-worth target to be reached by a calendar date.

    Parameters
    ----------
    id : str
        Unique identifier; keys the per-goal success rates.
    target_amount : float
        Net worth that must be met or exceeded. Must be non-negative.
    target_date : date
        Date by which the target should be reached.
    name, category, priority : str
        Descriptive metadata carried through to reports.
    current_amount : float, default 0.0
        Amount already saved towards the goal (informational).
    """

    id: str
    target_amount: float
    target_date: date
    name: str = ""
    current_amount: float = 0.0
    category: str = "other"
    priority: str = "medium"

    def __post_init__(self) -> None:
        check_non_negative(f"Goal {self.id!r} target_amount", self.target_amount)

    @property
    def progress(self) -> float:
        """Fraction of the target already saved, capped to [0, 1]."""
        if self.target_amount <= 0:
            return 1.0
        return float(min(1.0, max(0.0, self.current_amount / self.target_amount)))


# ---------------------------------------------------------------------------
# Assumptions and snapshot
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Assumptions:
    """
    Global simulation parameters.

    Parameters
    ----------
    start_date : date
        First simulated month (normalized to the first of its month).
    projection_years : float
        Horizon in years; converted to ``max(1, round(years * 12))`` months.
    inflation_annual : float, default 0.0
        Default growth for expenses without their own growth rate.
    tax_rate_effective : float, default 0.0
        Flat rate applied to gross income (clamped to [0, 1]).
    currency : str, default "EUR"
        Reporting currency label. No conversion is performed.

    Raises
    ------
    ValidationError
        If ``start_date`` or ``projection_years`` is missing.
    """

    start_date: Optional[date] = None
    projection_years: Optional[float] = None
    inflation_annual: float = 0.0
    tax_rate_effective: float = 0.0
    currency: str = "EUR"

    def __post_init__(self) -> None:
        if self.start_date is None:
            raise ValidationError(
                "Assumptions.start_date is required to anchor the simulation calendar."
            )
        if self.projection_years is None:
            raise ValidationError(
                "Assumptions.projection_years is required. Use e.g. projection_years=10."
            )

    @property
    def horizon_months(self) -> int:
        """Number of simulated months (at least 1)."""
        return max(1, int(round(self.projection_years * MONTHS_PER_YEAR)))

    @property
    def effective_tax_rate(self) -> float:
        return float(min(1.0, max(0.0, self.tax_rate_effective)))

    @property
    def first_month(self) -> date:
        return month_start(self.start_date)


@dataclass(frozen=True)
class FinanceSnapshot:
    """
    Fully specified input of one projection.

    Collections are stored as tuples so that a snapshot can be shared
    freely between runs and workers without defensive copies.
    """

    assumptions: Assumptions
    accounts: Tuple[Account, ...] = field(default_factory=tuple)
    incomes: Tuple[IncomeItem, ...] = field(default_factory=tuple)
    expenses: Tuple[ExpenseItem, ...] = field(default_factory=tuple)
    goals: Tuple[FinancialGoal, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        for name in ("accounts", "incomes", "expenses", "goals"):
            value = getattr(self, name)
            if not isinstance(value, tuple):
                object.__setattr__(self, name, tuple(value))
        ids = [a.id for a in self.accounts]
        if len(ids) != len(set(ids)):
            raise ValidationError(f"Account ids must be unique, got {ids}.")

    def cash_account(self) -> Optional[Account]:
        """First cash account, which receives each month's net cash flow."""
        return next((a for a in self.accounts if a.kind == "cash"), None)

    def with_assumptions(self, **changes) -> FinanceSnapshot:
        """Copy of this snapshot with some assumption fields replaced."""
        return replace(self, assumptions=replace(self.assumptions, **changes))

    def with_items(
        self,
        *,
        accounts: Optional[Iterable[Account]] = None,
        incomes: Optional[Iterable[IncomeItem]] = None,
        expenses: Optional[Iterable[ExpenseItem]] = None,
    ) -> FinanceSnapshot:
        """Copy of this snapshot with some collections replaced."""
        return replace(
            self,
            accounts=tuple(accounts) if accounts is not None else self.accounts,
            incomes=tuple(incomes) if incomes is not None else self.incomes,
            expenses=tuple(expenses) if expenses is not None else self.expenses,
        )
