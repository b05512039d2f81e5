"""
Monte Carlo simulation layer for finplan.

Purpose
-------
Turns the deterministic projection engine into a probabilistic forecast.
Each iteration perturbs the growth parameters of a snapshot with normal
draws, projects the perturbed copy, and keeps its net-worth path. The
ensemble is reduced to p10/p50/p90 bands per month and to goal success
probabilities.

Perturbation model
------------------
- Investment/property accounts: expected_return ~ N(declared mean, declared
  volatility), falling back to N(0.07, 0.15) when unset.
- Incomes: growth = (declared or 0.03) + N(0, 0.01).
- Expenses: growth = (declared or 0.02) + N(0, 0.02).
- External portfolio value: grown for one month by an N(0.07, 0.15) annual
  return converted to its effective monthly rate.

All constants are fields of :class:`~finplan.config.MonteCarloConfig`.

Randomness and reproducibility
------------------------------
Normal draws come from a Box–Muller transform over an injected
``numpy.random.Generator``. Every iteration owns a generator seeded from its
own child of one root ``SeedSequence``; results therefore depend only on the
root seed, never on the number of worker processes.

Example
-------
>>> from finplan.monte_carlo import simulate
>>> result = simulate(snapshot, iterations=500, config=MonteCarloConfig(seed=42))
>>> result.success_rate
0.87
>>> result.to_frame().tail(3)
"""

from __future__ import annotations

import logging
import math
import threading
import warnings
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .config import MonteCarloConfig
from .constants import PERCENTILE_LEVELS
from .exceptions import SimulationCancelled
from .models import Assumptions, FinanceSnapshot, FinancialGoal
from .projection import project
from .utils import annual_to_monthly, column_percentiles, month_index, months_between

__all__ = [
    "CancellationToken",
    "NormalSampler",
    "MonteCarloScenario",
    "MonteCarloResult",
    "MonteCarloSimulator",
    "perturb_snapshot",
    "perturb_portfolio_value",
    "goal_month_index",
    "goal_success_rates",
    "simulate",
]

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


# ---------------------------------------------------------------------------
# Cancellation and sampling
# ---------------------------------------------------------------------------

class CancellationToken:
    """Cooperative cancellation flag, safe to set from another thread."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class NormalSampler:
    """
    Normal variates via the Box–Muller transform.

    Parameters
    ----------
    rng : numpy.random.Generator
        Source of uniform draws. Owned by one iteration; never shared.

    Notes
    -----
    ``z = sqrt(-2 ln u1) * cos(2π u2)`` with ``u1`` in (0, 1] so the log is
    always finite. ``normal(mean, 0)`` returns ``mean`` exactly and does not
    consume any draws.
    """

    def __init__(self, rng: np.random.Generator):
        self.rng = rng

    def standard_normal(self) -> float:
        u1 = 1.0 - self.rng.random()
        u2 = self.rng.random()
        return math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)

    def normal(self, mean: float, std: float) -> float:
        if std == 0:
            return float(mean)
        return self.standard_normal() * std + mean


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MonteCarloScenario:
    date: date
    p10: float
    p50: float
    p90: float


@dataclass(frozen=True)
class MonteCarloResult:
    """
    Aggregated Monte Carlo forecast.

    Attributes
    ----------
    scenarios : tuple of MonteCarloScenario
        One percentile triple per simulated month.
    success_rate : float
        Minimum goal success rate across goals inside the horizon
        (1.0 when there are none).
    goal_success_rates : dict[str, float]
        Success rate of every goal inside the horizon, keyed by goal id.
    iterations : int
        Number of iterations that produced the ensemble.
    seed : int, optional
        Root entropy of the run; passing it back as ``seed`` reproduces it.
    """

    scenarios: Tuple[MonteCarloScenario, ...]
    success_rate: float
    goal_success_rates: Dict[str, float] = field(default_factory=dict)
    iterations: int = 0
    seed: Optional[int] = None

    def __len__(self) -> int:
        return len(self.scenarios)

    def to_frame(self) -> pd.DataFrame:
        """Percentile bands as a DataFrame indexed by first-of-month dates."""
        start = self.scenarios[0].date if self.scenarios else None
        frame = pd.DataFrame(
            {
                "p10": [s.p10 for s in self.scenarios],
                "p50": [s.p50 for s in self.scenarios],
                "p90": [s.p90 for s in self.scenarios],
            },
            index=month_index(start, len(self.scenarios)),
        )
        frame.index.name = "date"
        return frame


# ---------------------------------------------------------------------------
# Perturbation
# ---------------------------------------------------------------------------

def perturb_snapshot(
    snapshot: FinanceSnapshot,
    sampler: NormalSampler,
    config: MonteCarloConfig,
) -> FinanceSnapshot:
    """
    Build a randomized copy of *snapshot*.

    Draw order is fixed (accounts, incomes, expenses) so that a seeded
    sampler always yields the same copy. The input is left untouched.
    """
    accounts = []
    for account in snapshot.accounts:
        if account.is_growth_asset:
            mean = (
                account.expected_return_annual
                if account.expected_return_annual is not None
                else config.return_mean
            )
            volatility = (
                account.volatility_annual
                if account.volatility_annual is not None
                else config.return_volatility
            )
            account = replace(account, expected_return_annual=sampler.normal(mean, volatility))
        accounts.append(account)

    incomes = [
        replace(
            item,
            growth_annual=item.growth_or(config.income_growth_default)
            + sampler.normal(0.0, config.income_growth_sigma),
        )
        for item in snapshot.incomes
    ]
    expenses = [
        replace(
            item,
            growth_annual=item.growth_or(config.expense_growth_default)
            + sampler.normal(0.0, config.expense_growth_sigma),
        )
        for item in snapshot.expenses
    ]
    return snapshot.with_items(accounts=accounts, incomes=incomes, expenses=expenses)


def perturb_portfolio_value(
    value: float,
    sampler: NormalSampler,
    config: MonteCarloConfig,
) -> float:
    """Grow a positive portfolio value by one month of a random annual return."""
    if value <= 0:
        return value
    annual = sampler.normal(config.portfolio_return_mean, config.portfolio_volatility)
    return value * (1.0 + annual_to_monthly(annual))


def _run_iteration(
    snapshot: FinanceSnapshot,
    config: MonteCarloConfig,
    seed_seq: np.random.SeedSequence,
    portfolio_value: float,
    months: int,
) -> np.ndarray:
    sampler = NormalSampler(np.random.default_rng(seed_seq))
    perturbed = perturb_snapshot(snapshot, sampler, config)
    value = perturb_portfolio_value(portfolio_value, sampler, config)
    return project(perturbed, horizon_months=months, portfolio_value=value).net_worth()


def _run_chunk(
    snapshot: FinanceSnapshot,
    config: MonteCarloConfig,
    seed_seqs: Sequence[np.random.SeedSequence],
    portfolio_value: float,
    months: int,
) -> np.ndarray:
    """Worker entry point: net-worth paths of a batch of iterations."""
    paths = np.empty((len(seed_seqs), months), dtype=float)
    for row, seed_seq in enumerate(seed_seqs):
        paths[row] = _run_iteration(snapshot, config, seed_seq, portfolio_value, months)
    return paths


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------

def goal_month_index(goal: FinancialGoal, start: date) -> int:
    """
    Projection month index of a goal's target date.

    Uses the same calendar-month stepping as the engine: the goal is
    checked against the point whose month contains its target date.
    Negative when the goal precedes the simulation start.
    """
    return months_between(start, goal.target_date)


def goal_success_rates(
    paths: np.ndarray,
    goals: Iterable[FinancialGoal],
    start: date,
) -> Tuple[Dict[str, float], List[float]]:
    """
    Fraction of iterations meeting each goal at its target month.

    Goals whose month falls outside the simulated horizon are skipped.
    A non-positive target is always met.

    Returns
    -------
    (rates_by_id, rates)
        Rates keyed by goal id, and the same rates in goal order (used for
        the overall minimum even when ids repeat).
    """
    n_iter, months = paths.shape
    by_id: Dict[str, float] = {}
    rates: List[float] = []
    for goal in goals:
        idx = goal_month_index(goal, start)
        if idx < 0 or idx >= months:
            logger.debug(
                "Goal %r (month %d) is outside the %d-month horizon; skipped",
                goal.id, idx, months,
            )
            continue
        if goal.target_amount <= 0:
            rate = 1.0
        elif n_iter == 0:
            rate = 0.0
        else:
            rate = float(np.count_nonzero(paths[:, idx] >= goal.target_amount)) / n_iter
        by_id[goal.id] = rate
        rates.append(rate)
    return by_id, rates


# ---------------------------------------------------------------------------
# Simulator
# ---------------------------------------------------------------------------

class MonteCarloSimulator:
    """Runs many perturbed projections and aggregates the ensemble.

    Parameters
    ----------
    config : MonteCarloConfig, optional
        Iterations, seed, perturbation parameters and worker count.
    rng : numpy.random.Generator, optional
        Injected generator supplying the root entropy. Takes precedence
        over ``config.seed``.

    Example
    -------
    >>> simulator = MonteCarloSimulator(MonteCarloConfig(iterations=1000, seed=1))
    >>> result = simulator.run(snapshot, portfolio_value=25_000)
    >>> result.scenarios[-1].p50
    """

    def __init__(
        self,
        config: Optional[MonteCarloConfig] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.config = config or MonteCarloConfig()
        self.rng = rng

    def _root_seed(self) -> np.random.SeedSequence:
        if self.rng is not None:
            return np.random.SeedSequence(int(self.rng.integers(0, 2**63 - 1)))
        return np.random.SeedSequence(self.config.seed)

    def _report(
        self,
        before: int,
        done: int,
        total: int,
        progress: Optional[ProgressCallback],
    ) -> None:
        every = self.config.log_every
        if done // every > before // every:
            logger.info("Completed %d/%d iterations", done, total)
        if progress is not None:
            progress(done, total)

    def _run_serial(
        self,
        snapshot: FinanceSnapshot,
        seeds: Sequence[np.random.SeedSequence],
        portfolio_value: float,
        months: int,
        cancel_token: Optional[CancellationToken],
        progress: Optional[ProgressCallback],
    ) -> np.ndarray:
        total = len(seeds)
        paths = np.empty((total, months), dtype=float)
        for k, seed_seq in enumerate(seeds):
            if cancel_token is not None and cancel_token.cancelled:
                raise SimulationCancelled(k, total)
            paths[k] = _run_iteration(snapshot, self.config, seed_seq, portfolio_value, months)
            self._report(k, k + 1, total, progress)
        return paths

    def _run_parallel(
        self,
        snapshot: FinanceSnapshot,
        seeds: Sequence[np.random.SeedSequence],
        portfolio_value: float,
        months: int,
        cancel_token: Optional[CancellationToken],
        progress: Optional[ProgressCallback],
    ) -> np.ndarray:
        total = len(seeds)
        n_jobs = self.config.n_jobs
        # several batches per worker; cancellation is checked between batches
        batches = [b for b in np.array_split(np.arange(total), min(total, n_jobs * 4)) if b.size]
        paths = np.empty((total, months), dtype=float)

        if cancel_token is not None and cancel_token.cancelled:
            raise SimulationCancelled(0, total)

        pool = ProcessPoolExecutor(max_workers=n_jobs)
        try:
            futures = {
                pool.submit(
                    _run_chunk,
                    snapshot,
                    self.config,
                    [seeds[i] for i in batch],
                    portfolio_value,
                    months,
                ): batch
                for batch in batches
            }
            done = 0
            for future in as_completed(futures):
                batch = futures[future]
                paths[batch] = future.result()
                before, done = done, done + batch.size
                self._report(before, done, total, progress)
                if cancel_token is not None and cancel_token.cancelled and done < total:
                    pool.shutdown(wait=True, cancel_futures=True)
                    raise SimulationCancelled(done, total)
        finally:
            pool.shutdown(wait=True, cancel_futures=True)
        return paths

    def run(
        self,
        snapshot: FinanceSnapshot,
        portfolio_value: float = 0.0,
        cancel_token: Optional[CancellationToken] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> MonteCarloResult:
        """
        Run the configured number of iterations.

        Parameters
        ----------
        snapshot : FinanceSnapshot
            Unperturbed input; never mutated.
        portfolio_value : float, default 0.0
            External stock-portfolio value folded into assets.
        cancel_token : CancellationToken, optional
            Checked between iterations (or between batches when parallel).
        progress : callable, optional
            ``progress(done, total)`` after each iteration/batch.

        Returns
        -------
        MonteCarloResult

        Raises
        ------
        SimulationCancelled
            If *cancel_token* is set before the run completes.
        """
        config = self.config
        iterations = config.iterations
        portfolio_value = float(portfolio_value or 0.0)
        months = snapshot.assumptions.horizon_months
        root = self._root_seed()
        seeds = root.spawn(iterations)

        logger.info(
            "Running Monte Carlo simulation with %d iterations over %d months (n_jobs=%d)",
            iterations, months, config.n_jobs,
        )

        if config.n_jobs > 1 and iterations > 1:
            paths = self._run_parallel(snapshot, seeds, portfolio_value, months, cancel_token, progress)
        else:
            paths = self._run_serial(snapshot, seeds, portfolio_value, months, cancel_token, progress)

        # dates come from one unperturbed reference run
        reference = project(snapshot, horizon_months=months, portfolio_value=portfolio_value)
        bands = column_percentiles(paths, PERCENTILE_LEVELS)
        scenarios = tuple(
            MonteCarloScenario(
                date=point.date,
                p10=float(bands[0, m]),
                p50=float(bands[1, m]),
                p90=float(bands[2, m]),
            )
            for m, point in enumerate(reference.points)
        )

        by_id, rates = goal_success_rates(paths, snapshot.goals, snapshot.assumptions.first_month)
        success_rate = min(rates) if rates else 1.0

        logger.info(
            "Monte Carlo simulation complete. Success rate: %.1f%%", success_rate * 100.0
        )
        return MonteCarloResult(
            scenarios=scenarios,
            success_rate=success_rate,
            goal_success_rates=by_id,
            iterations=iterations,
            seed=int(root.entropy),
        )


def simulate(
    snapshot: FinanceSnapshot,
    portfolio_value: float = 0.0,
    iterations: Optional[int] = None,
    *,
    assumptions: Optional[Assumptions] = None,
    config: Optional[MonteCarloConfig] = None,
    rng: Optional[np.random.Generator] = None,
    cancel_token: Optional[CancellationToken] = None,
    progress: Optional[ProgressCallback] = None,
) -> MonteCarloResult:
    """
    Convenience wrapper around :class:`MonteCarloSimulator`.

    *iterations* overrides ``config.iterations`` (default 1000); values
    <= 0 are normalized to a single iteration. *assumptions* overrides
    ``snapshot.assumptions``.
    """
    config = config or MonteCarloConfig()
    if iterations is not None:
        if iterations <= 0:
            warnings.warn(
                f"iterations={iterations} is not positive; running 1 iteration.",
                UserWarning,
            )
            iterations = 1
        config = config.model_copy(update={"iterations": int(iterations)})
    if assumptions is not None:
        snapshot = replace(snapshot, assumptions=assumptions)
    return MonteCarloSimulator(config, rng=rng).run(
        snapshot,
        portfolio_value=portfolio_value,
        cancel_token=cancel_token,
        progress=progress,
    )
