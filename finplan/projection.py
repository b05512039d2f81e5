"""Deterministic projection engine for finplan

Simulates the month-by-month evolution of a household's balance sheet from a
:class:`~finplan.models.FinanceSnapshot`: income and expense accrual, flat
taxes, account contributions, loan amortization, investment growth, and a
single cash bucket that absorbs each month's net cash flow.

Design goals
------------
- Pure function of its inputs: no randomness, no global state, and the
  snapshot is never mutated (balances live in a private dict per run).
- Calendar-aware outputs: one point per first-of-month date, plus per-account
  balance series keyed by account id.

Monthly step (in order)
-----------------------
1. Gross income of all active income items (with compounded growth).
2. Expenses of all active expense items (growth defaults to inflation).
3. Taxes = gross income × effective tax rate.
4. Accounts: contributions, then loan interest and payments, then growth of
   investment/property accounts, then the net cash delta into cash.
5. Totals: loans are liabilities, every other account is an asset (even a
   negative cash account). Only the virtual cash bucket is split by sign.

Typical usage
-------------
>>> from finplan.projection import project, milestone_reach
>>> result = project(snapshot)
>>> result.points[0].cash_flow
2250.0
>>> result.to_frame()[["net_worth", "cash_flow"]].tail()
>>> milestone_reach(result, 50_000)
"""
from __future__ import annotations

import logging
import warnings
from dataclasses import asdict, dataclass, fields, replace
from datetime import date
from typing import Dict, List, Mapping, Optional, Sequence, Set, Tuple

import numpy as np
import pandas as pd

from .constants import MONTHS_PER_YEAR, SCENARIO_RETURN_FACTORS, VIRTUAL_CASH_ID
from .models import Assumptions, CashFlowItem, FinanceSnapshot
from .utils import (
    add_months,
    annual_to_monthly,
    annualized_return,
    month_index,
    month_label,
)

__all__ = [
    "ProjectionPoint",
    "ProjectionResult",
    "ProjectionSummary",
    "Milestone",
    "ContributionImpact",
    "ProjectionEngine",
    "project",
    "project_scenarios",
    "milestone_reach",
    "contribution_impact",
]

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProjectionPoint:
    date: date
    net_worth: float
    total_assets: float
    total_liabilities: float
    cash_flow: float
    income: float
    expenses: float
    taxes: float
    contributions: float = 0.0
    loan_payments: float = 0.0
    stock_portfolio_value: Optional[float] = None


@dataclass(frozen=True)
class ProjectionSummary:
    starting_value: float
    ending_value: float
    total_gain: float
    total_contributions: float
    annualized_growth: float


@dataclass(frozen=True)
class Milestone:
    month: int
    date: date


@dataclass(frozen=True)
class ContributionImpact:
    months_saved: int
    value_difference: float


@dataclass(frozen=True)
class ProjectionResult:
    """
    Output of one deterministic projection.

    Attributes
    ----------
    points : tuple of ProjectionPoint
        One point per simulated month, in chronological order.
    by_account_balances : dict[str, tuple of float]
        End-of-month balance of every account (and of the virtual cash
        bucket when the snapshot has no cash account), aligned with points.
    month_labels : tuple of str
        ``YYYY-MM`` label of every point.
    """

    points: Tuple[ProjectionPoint, ...]
    by_account_balances: Dict[str, Tuple[float, ...]]
    month_labels: Tuple[str, ...]

    def __len__(self) -> int:
        return len(self.points)

    @property
    def dates(self) -> List[date]:
        return [p.date for p in self.points]

    def net_worth(self) -> np.ndarray:
        """Net-worth path as a 1-D float array."""
        return np.array([p.net_worth for p in self.points], dtype=float)

    def _index(self) -> pd.DatetimeIndex:
        start = self.points[0].date if self.points else None
        return month_index(start, len(self.points))

    def to_frame(self) -> pd.DataFrame:
        """Points as a DataFrame indexed by first-of-month dates."""
        rows = [asdict(p) for p in self.points]
        frame = pd.DataFrame(rows, columns=[f.name for f in fields(ProjectionPoint)])
        frame = frame.drop(columns=["date"])
        frame.index = self._index()
        frame.index.name = "date"
        return frame

    def balances_frame(self) -> pd.DataFrame:
        """Per-account balances as a DataFrame (one column per account id)."""
        frame = pd.DataFrame(self.by_account_balances, index=self._index())
        frame.index.name = "date"
        return frame

    def summary(self) -> ProjectionSummary:
        """Start/end net worth, total contributions and annualized growth."""
        if not self.points:
            return ProjectionSummary(0.0, 0.0, 0.0, 0.0, 0.0)
        start = self.points[0].net_worth
        end = self.points[-1].net_worth
        years = len(self.points) / float(MONTHS_PER_YEAR)
        return ProjectionSummary(
            starting_value=start,
            ending_value=end,
            total_gain=end - start,
            total_contributions=float(sum(p.contributions for p in self.points)),
            annualized_growth=annualized_return(start, end, years),
        )


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class ProjectionEngine:
    """Month-by-month balance-sheet simulator for one finance snapshot.

    Parameters
    ----------
    snapshot : FinanceSnapshot
        Accounts, cash flows and goals to project. Never mutated.
    assumptions : Assumptions, optional
        Overrides ``snapshot.assumptions`` when given.
    """

    def __init__(self, snapshot: FinanceSnapshot, assumptions: Optional[Assumptions] = None):
        self.snapshot = snapshot
        self.assumptions = assumptions if assumptions is not None else snapshot.assumptions

    def horizon(self, horizon_months: Optional[int] = None) -> int:
        """Resolve the number of simulated months (at least 1)."""
        if horizon_months is None:
            return self.assumptions.horizon_months
        if horizon_months <= 0:
            warnings.warn(
                f"horizon_months={horizon_months} is not positive; projecting 1 month.",
                UserWarning,
            )
            return 1
        return int(horizon_months)

    # -------------------- Cash flows --------------------
    @staticmethod
    def _accrue(
        items: Sequence[CashFlowItem],
        month: date,
        sim_month: int,
        default_growth: float,
        included_once: Set[int],
    ) -> float:
        """Sum of the monthly amounts of all *items* active in *month*."""
        total = 0.0
        for k, item in enumerate(items):
            if not item.is_active(month):
                continue
            if item.is_once:
                # first active month only, and never grown
                if k in included_once:
                    continue
                included_once.add(k)
                total += item.amount
                continue
            monthly_growth = annual_to_monthly(item.growth_or(default_growth))
            periods = item.months_since_start(month, sim_month)
            total += item.base_monthly_amount() * (1.0 + monthly_growth) ** periods
        return total

    # -------------------- Run --------------------
    def run(
        self,
        horizon_months: Optional[int] = None,
        portfolio_value: Optional[float] = None,
    ) -> ProjectionResult:
        """
        Project the snapshot forward.

        Parameters
        ----------
        horizon_months : int, optional
            Number of months to simulate. Defaults to the assumptions'
            horizon; values <= 0 are normalized to 1.
        portfolio_value : float, optional
            Externally valued stock portfolio folded into assets each month
            (only when > 0). Held constant over the horizon.

        Returns
        -------
        ProjectionResult
        """
        months = self.horizon(horizon_months)
        assumptions = self.assumptions
        accounts = self.snapshot.accounts
        start = assumptions.first_month
        tax_rate = assumptions.effective_tax_rate

        cash_account = self.snapshot.cash_account()
        cash_id = cash_account.id if cash_account is not None else VIRTUAL_CASH_ID

        balances: Dict[str, float] = {a.id: float(a.balance) for a in accounts}
        balances.setdefault(cash_id, 0.0)
        history: Dict[str, List[float]] = {key: [] for key in balances}

        once_incomes: Set[int] = set()
        once_expenses: Set[int] = set()
        points: List[ProjectionPoint] = []
        labels: List[str] = []

        logger.debug("Projecting %d months from %s", months, start.isoformat())

        for i in range(months):
            current = add_months(start, i)

            # 1-3) Income, expenses, taxes
            income = self._accrue(self.snapshot.incomes, current, i, 0.0, once_incomes)
            expenses = self._accrue(
                self.snapshot.expenses, current, i, assumptions.inflation_annual, once_expenses
            )
            taxes = income * tax_rate
            net_cash = income - taxes - expenses

            # 4a) Contributions move money out of cash
            contributions = 0.0
            for account in accounts:
                amount = max(0.0, account.contribution_monthly or 0.0)
                if amount <= 0.0 or account.kind == "cash":
                    continue
                if account.is_liability:
                    amount = min(amount, balances[account.id])
                    balances[account.id] -= amount
                else:
                    balances[account.id] += amount
                contributions += amount
            net_cash -= contributions

            # 4b) Loans accrue interest, then pay the minimum
            loan_payments = 0.0
            for account in accounts:
                if not account.is_liability:
                    continue
                balance = balances[account.id]
                balance += balance * annual_to_monthly(account.interest_rate_annual or 0.0)
                payment = min(max(0.0, account.min_payment_monthly or 0.0), max(0.0, balance))
                balances[account.id] = max(0.0, balance - payment)
                loan_payments += payment
            net_cash -= loan_payments

            # 4c) Investments and properties compound
            for account in accounts:
                if account.is_growth_asset:
                    rate = annual_to_monthly(account.expected_return_annual or 0.0)
                    balances[account.id] = max(0.0, balances[account.id] * (1.0 + rate))

            # 4d) Net cash into the cash bucket (may go negative)
            balances[cash_id] += net_cash

            # 5) Totals
            assets = 0.0
            liabilities = 0.0
            for account in accounts:
                balance = balances[account.id]
                if account.is_liability:
                    liabilities += balance
                else:
                    assets += balance
            if cash_account is None:
                virtual = balances[cash_id]
                if virtual >= 0:
                    assets += virtual
                else:
                    liabilities += -virtual
            if portfolio_value is not None and portfolio_value > 0:
                assets += portfolio_value

            for key, balance in balances.items():
                history[key].append(balance)

            # 6) Emit
            labels.append(month_label(current))
            points.append(
                ProjectionPoint(
                    date=current,
                    net_worth=assets - liabilities,
                    total_assets=assets,
                    total_liabilities=liabilities,
                    cash_flow=net_cash,
                    income=income,
                    expenses=expenses,
                    taxes=taxes,
                    contributions=contributions,
                    loan_payments=loan_payments,
                    stock_portfolio_value=portfolio_value,
                )
            )

        return ProjectionResult(
            points=tuple(points),
            by_account_balances={key: tuple(series) for key, series in history.items()},
            month_labels=tuple(labels),
        )


def project(
    snapshot: FinanceSnapshot,
    assumptions: Optional[Assumptions] = None,
    horizon_months: Optional[int] = None,
    portfolio_value: Optional[float] = None,
) -> ProjectionResult:
    """Run :class:`ProjectionEngine` once. See :meth:`ProjectionEngine.run`."""
    return ProjectionEngine(snapshot, assumptions).run(
        horizon_months=horizon_months, portfolio_value=portfolio_value
    )


# ---------------------------------------------------------------------------
# Three-case projections and milestones
# ---------------------------------------------------------------------------

def project_scenarios(
    snapshot: FinanceSnapshot,
    *,
    horizon_months: Optional[int] = None,
    portfolio_value: Optional[float] = None,
    factors: Mapping[str, float] = SCENARIO_RETURN_FACTORS,
) -> Dict[str, ProjectionResult]:
    """
    Run pessimistic/base/optimistic projections.

    Every investment/property account's expected return is multiplied by
    the scenario factor; all other inputs are shared.

    Examples
    --------
    >>> results = project_scenarios(snapshot)
    >>> {k: r.points[-1].net_worth for k, r in results.items()}
    """
    results: Dict[str, ProjectionResult] = {}
    for name, factor in factors.items():
        accounts = [
            replace(a, expected_return_annual=a.expected_return_annual * factor)
            if a.is_growth_asset and a.expected_return_annual is not None
            else a
            for a in snapshot.accounts
        ]
        results[name] = project(
            snapshot.with_items(accounts=accounts),
            horizon_months=horizon_months,
            portfolio_value=portfolio_value,
        )
    return results


def milestone_reach(result: ProjectionResult, target: float) -> Optional[Milestone]:
    """First month whose net worth meets or exceeds *target*, or None."""
    for i, point in enumerate(result.points):
        if point.net_worth >= target:
            return Milestone(month=i, date=point.date)
    return None


def contribution_impact(
    base: ProjectionResult,
    increased: ProjectionResult,
    target: float,
) -> ContributionImpact:
    """
    Compare two projections (e.g. before/after raising a contribution).

    ``months_saved`` is how much earlier *increased* reaches *target* (0 if
    either never reaches it); ``value_difference`` compares final net worth.
    """
    base_hit = milestone_reach(base, target)
    increased_hit = milestone_reach(increased, target)
    months_saved = (
        base_hit.month - increased_hit.month
        if base_hit is not None and increased_hit is not None
        else 0
    )
    base_end = base.points[-1].net_worth if base.points else 0.0
    increased_end = increased.points[-1].net_worth if increased.points else 0.0
    return ContributionImpact(
        months_saved=months_saved,
        value_difference=increased_end - base_end,
    )
