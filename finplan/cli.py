"""
Command-Line Interface for finplan.

Purpose
-------
Runs projections and Monte Carlo simulations on a saved finance snapshot
without writing Python code.

Commands
--------
- project: Deterministic month-by-month projection (optionally three cases)
- simulate: Monte Carlo percentile bands and goal success rates
- config validate: Check a snapshot file against the input schema
- info: Version and dependency information

Example Usage
-------------
    # Deterministic projection, saved as CSV
    $ finplan project --config household.json --output out/projection.csv

    # Monte Carlo with a fixed seed on 4 worker processes
    $ finplan simulate -c household.json -n 5000 --seed 42 --jobs 4

    # Validate a dashboard export
    $ finplan config validate household.json

    # Show version
    $ finplan --version
"""

from __future__ import annotations

import logging
import sys
from importlib import metadata
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.progress import BarColumn, Progress, TextColumn
from rich.table import Table

from . import __version__
from .config import AppSettings, MonteCarloConfig
from .exceptions import FinPlanError
from .monte_carlo import simulate as run_monte_carlo
from .projection import milestone_reach, project, project_scenarios
from .serialization import load_snapshot, save_result


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _money(value: float, currency: str) -> str:
    return f"{value:,.0f} {currency}"


@click.group()
@click.version_option(version=__version__, prog_name="finplan")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, quiet: bool, verbose: bool) -> None:
    """
    finplan - Personal finance projection and Monte Carlo forecasting.

    Projects accounts, incomes, expenses and loans month by month, and
    estimates the probability of reaching net-worth goals.

    Use 'finplan COMMAND --help' for command-specific help.
    """
    settings = AppSettings()
    _configure_logging("DEBUG" if verbose else settings.log_level)

    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["settings"] = settings
    ctx.obj["console"] = Console()


@main.command("project")
@click.option(
    "--config", "-c",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Path to snapshot file (JSON)"
)
@click.option(
    "--output", "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Write the projection to this file (.json or .csv)"
)
@click.option(
    "--months", "-T",
    type=int,
    default=None,
    help="Horizon in months (default: projectionYears of the snapshot)"
)
@click.option(
    "--portfolio-value",
    type=float,
    default=0.0,
    help="External stock-portfolio value added to assets"
)
@click.option(
    "--scenarios",
    is_flag=True,
    help="Also run pessimistic/optimistic return cases"
)
@click.option(
    "--target",
    type=float,
    default=None,
    help="Report the first month net worth reaches this amount"
)
@click.pass_context
def project_cmd(
    ctx: click.Context,
    config: Path,
    output: Optional[Path],
    months: Optional[int],
    portfolio_value: float,
    scenarios: bool,
    target: Optional[float],
) -> None:
    """
    Run a deterministic projection.

    Example:
        finplan project -c household.json --scenarios --target 100000
    """
    console: Console = ctx.obj["console"]
    quiet = ctx.obj.get("quiet", False)

    try:
        snapshot = load_snapshot(config)
        result = project(snapshot, horizon_months=months, portfolio_value=portfolio_value)
        cases = (
            project_scenarios(snapshot, horizon_months=months, portfolio_value=portfolio_value)
            if scenarios else {}
        )
    except FinPlanError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    currency = snapshot.assumptions.currency
    summary = result.summary()

    if not quiet:
        table = Table(title="Projection Summary", show_header=True)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green", justify="right")

        table.add_row("Horizon", f"{len(result)} months")
        table.add_row("Start", result.month_labels[0])
        table.add_row("Starting Net Worth", _money(summary.starting_value, currency))
        table.add_row("Ending Net Worth", _money(summary.ending_value, currency))
        table.add_row("Total Gain", _money(summary.total_gain, currency))
        table.add_row("Contributions", _money(summary.total_contributions, currency))
        table.add_row("Annualized Growth", f"{summary.annualized_growth * 100:.2f}%")
        if target is not None:
            hit = milestone_reach(result, target)
            table.add_row(
                f"Reaches {_money(target, currency)}",
                hit.date.isoformat() if hit is not None else "not within horizon",
            )
        console.print(table)

        if cases:
            case_table = Table(title="Return Scenarios")
            case_table.add_column("Case", style="cyan")
            case_table.add_column("Ending Net Worth", justify="right")
            for name, case in cases.items():
                case_table.add_row(name, _money(case.points[-1].net_worth, currency))
            console.print(case_table)

    if output:
        save_result(result, output)
        if not quiet:
            click.echo(f"Projection saved to {output}")


@main.command()
@click.option(
    "--config", "-c",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Path to snapshot file (JSON)"
)
@click.option(
    "--output", "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Write the bands to this file (.json or .csv)"
)
@click.option(
    "--iterations", "-n",
    type=int,
    default=None,
    help="Number of Monte Carlo iterations (default: FINPLAN_DEFAULT_ITERATIONS or 1000)"
)
@click.option(
    "--seed", "-s",
    type=int,
    default=None,
    help="Random seed for reproducibility"
)
@click.option(
    "--jobs", "-j",
    type=int,
    default=None,
    help="Worker processes (default: FINPLAN_N_JOBS or 1)"
)
@click.option(
    "--portfolio-value",
    type=float,
    default=0.0,
    help="External stock-portfolio value added to assets"
)
@click.pass_context
def simulate(
    ctx: click.Context,
    config: Path,
    output: Optional[Path],
    iterations: Optional[int],
    seed: Optional[int],
    jobs: Optional[int],
    portfolio_value: float,
) -> None:
    """
    Run a Monte Carlo simulation.

    Perturbs returns and growth rates, projects every iteration, and
    reports p10/p50/p90 net worth and goal success rates.

    Example:
        finplan simulate -c household.json -n 5000 --seed 42
    """
    console: Console = ctx.obj["console"]
    quiet = ctx.obj.get("quiet", False)
    settings: AppSettings = ctx.obj["settings"]

    try:
        snapshot = load_snapshot(config)
        mc_config = MonteCarloConfig(
            iterations=settings.default_iterations,
            seed=seed if seed is not None else settings.default_seed,
            n_jobs=jobs if jobs is not None else settings.n_jobs,
        )
    except FinPlanError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except ValueError as e:
        click.echo(f"Invalid simulation parameters: {e}", err=True)
        sys.exit(1)

    total = iterations if iterations is not None else mc_config.iterations
    try:
        if quiet:
            result = run_monte_carlo(
                snapshot, portfolio_value=portfolio_value, iterations=iterations, config=mc_config
            )
        else:
            with Progress(
                TextColumn("[bold blue]Simulating"),
                BarColumn(),
                TextColumn("{task.completed}/{task.total}"),
                console=console,
                transient=True,
            ) as progress:
                task = progress.add_task("simulate", total=max(1, total))
                result = run_monte_carlo(
                    snapshot,
                    portfolio_value=portfolio_value,
                    iterations=iterations,
                    config=mc_config,
                    progress=lambda done, _total: progress.update(task, completed=done),
                )
    except FinPlanError as e:
        click.echo(f"Error during simulation: {e}", err=True)
        sys.exit(1)

    currency = snapshot.assumptions.currency
    final = result.scenarios[-1]

    if not quiet:
        table = Table(title="Monte Carlo Results", show_header=True)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green", justify="right")

        table.add_row("Horizon", f"{len(result)} months")
        table.add_row("Iterations", f"{result.iterations:,}")
        table.add_row("Seed", str(result.seed))
        table.add_row("", "")
        table.add_row("10th Percentile", _money(final.p10, currency))
        table.add_row("Median", _money(final.p50, currency))
        table.add_row("90th Percentile", _money(final.p90, currency))
        table.add_row("Success Rate", f"{result.success_rate * 100:.1f}%")
        console.print(table)

        if result.goal_success_rates:
            goals_table = Table(title="Goals")
            goals_table.add_column("Goal", style="cyan")
            goals_table.add_column("Success", justify="right")
            for goal_id, rate in result.goal_success_rates.items():
                goals_table.add_row(goal_id, f"{rate * 100:.1f}%")
            console.print(goals_table)
    else:
        click.echo(f"Success Rate: {result.success_rate * 100:.1f}%")

    if output:
        save_result(result, output)
        if not quiet:
            click.echo(f"Results saved to {output}")


@main.group()
def config() -> None:
    """Snapshot configuration commands."""
    pass


@config.command("validate")
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
@click.pass_context
def config_validate(ctx: click.Context, config_file: Path) -> None:
    """
    Validate a snapshot file.

    Example:
        finplan config validate household.json
    """
    console: Console = ctx.obj["console"]
    quiet = ctx.obj.get("quiet", False)

    try:
        snapshot = load_snapshot(config_file)
    except FinPlanError as e:
        click.echo(f"Configuration validation failed: {e}", err=True)
        sys.exit(1)

    if quiet:
        click.echo("Configuration is valid")
        return

    a = snapshot.assumptions
    lines = [
        "[bold]Snapshot Valid[/bold]",
        "",
        f"[cyan]Start:[/cyan] {a.first_month.isoformat()}  "
        f"[cyan]Horizon:[/cyan] {a.horizon_months} months",
        f"[cyan]Accounts ({len(snapshot.accounts)}):[/cyan]",
    ]
    for acc in snapshot.accounts:
        lines.append(f"  - {acc.id} ({acc.kind}): {_money(acc.balance, a.currency)}")
    lines.append(f"[cyan]Incomes:[/cyan] {len(snapshot.incomes)}  "
                 f"[cyan]Expenses:[/cyan] {len(snapshot.expenses)}  "
                 f"[cyan]Goals:[/cyan] {len(snapshot.goals)}")
    console.print(Panel("\n".join(lines), title="Configuration Summary", border_style="green"))


@main.command()
@click.pass_context
def info(ctx: click.Context) -> None:
    """
    Display system and package information.

    Shows version numbers of finplan, Python and its dependencies.
    """
    console: Console = ctx.obj["console"]

    info_lines = [
        f"finplan Version: {__version__}",
        f"Python: {sys.version.split()[0]}",
    ]

    for name in ("numpy", "pandas", "pydantic", "pydantic-settings", "click", "rich"):
        try:
            info_lines.append(f"{name}: {metadata.version(name)}")
        except metadata.PackageNotFoundError:
            info_lines.append(f"{name}: not installed")

    console.print(Panel("\n".join(info_lines), title="System Information"))


if __name__ == "__main__":
    main()
