"""
Custom exceptions for finplan.

Purpose
-------
Provides a unified exception hierarchy for consistent error handling
across the projection engine and the Monte Carlo layer. All exceptions
inherit from FinPlanError, enabling catch-all handling when needed.

Exception Hierarchy
-------------------
FinPlanError (base)
├── ConfigurationError - Invalid configuration or parameters
├── ValidationError - Input-shape failures detected before simulating
│   └── TimeIndexError - Month/date indexing errors
└── SimulationCancelled - Cooperative cancellation of a long run

Usage
-----
>>> from finplan.exceptions import ValidationError
>>>
>>> raise ValidationError("start_date is required")
>>>
>>> try:
...     result = simulate(snapshot, iterations=5000, cancel_token=token)
... except FinPlanError as e:
...     print(f"finplan error: {e}")
"""


class FinPlanError(Exception):
    """
    Base exception for all finplan errors.

    Examples
    --------
    >>> try:
    ...     project(snapshot)
    ... except FinPlanError as e:
    ...     logger.error(f"Projection failed: {e}")
    """
    pass


class ConfigurationError(FinPlanError):
    """
    Invalid configuration or parameters.

    Raised when a configuration file or a settings object cannot be
    turned into a usable snapshot, such as:
    - Unreadable or malformed JSON input
    - Parameter combinations the simulator cannot honor

    Examples
    --------
    >>> raise ConfigurationError(
    ...     "n_jobs must be >= 1, got 0."
    ... )
    """
    pass


class ValidationError(FinPlanError):
    """
    Input-shape validation failures.

    Raised before any simulation starts when the snapshot is missing
    required information or carries impossible values:
    - Missing simulation start date or projection horizon
    - Negative amounts on income/expense items
    - Negative outstanding loan balances

    Examples
    --------
    >>> raise ValidationError(
    ...     "projection_years is required. Use e.g. projection_years=10."
    ... )
    """
    pass


class TimeIndexError(ValidationError):
    """
    Month/date indexing errors.

    Raised when date specifications are inconsistent:
    - An activity window that ends before it starts

    Examples
    --------
    >>> raise TimeIndexError(
    ...     "Income 'salary' ends (2024-01-01) before it starts (2025-01-01)."
    ... )
    """
    pass


class SimulationCancelled(FinPlanError):
    """
    Monte Carlo run stopped through its cancellation token.

    Carries the number of iterations that had completed when the
    cancellation was observed.

    Examples
    --------
    >>> token = CancellationToken()
    >>> token.cancel()
    >>> simulate(snapshot, cancel_token=token)
    Traceback (most recent call last):
    ...
    SimulationCancelled: Monte Carlo run cancelled after 0 of 1000 iterations
    """

    def __init__(self, completed: int, requested: int):
        self.completed = completed
        self.requested = requested
        super().__init__(
            f"Monte Carlo run cancelled after {completed} of {requested} iterations"
        )
