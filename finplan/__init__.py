"""
finplan — Personal Finance Projection Engine

A tool for projecting a household's balance sheet month by month and for
estimating, by Monte Carlo simulation, how likely its net-worth goals are.

Modules
-------
- models        : Accounts, incomes, expenses, goals, assumptions, snapshot
- projection    : Deterministic monthly engine, scenarios, milestones
- monte_carlo   : Perturbed projections, percentile bands, goal success
- config        : Pydantic input schemas and settings
- serialization : JSON persistence for snapshots and results
- utils         : Shared utilities (validation, rates, calendar, percentiles)

"""

__version__ = "0.1.0"

from .models import (
    Account,
    Assumptions,
    ExpenseItem,
    FinanceSnapshot,
    FinancialGoal,
    IncomeItem,
)
from .projection import ProjectionEngine, ProjectionResult, project, project_scenarios
from .monte_carlo import CancellationToken, MonteCarloResult, MonteCarloSimulator, simulate
from .config import MonteCarloConfig
from . import utils
