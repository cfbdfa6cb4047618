"""
Core infrastructure for PyMMI.

Shared abstractions used by every sub-package (model, mixed, selection,
averaging).

Key components:
    datasource: Column-oriented, read-only DataSource
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    timing: Per-phase timing
"""

from pymmi.core.datasource import DataSource
from pymmi.core.result import Result
from pymmi.core.exceptions import (
    PyMMIError,
    ValidationError,
    DimensionError,
    MissingDataError,
    NumericalError,
    ConvergenceError,
    InsufficientSampleSizeError,
    TooManyCandidatesError,
    EmptySelectionError,
    FittingCancelled,
)

__all__ = [
    # Data
    "DataSource",
    # Result
    "Result",
    # Exceptions
    "PyMMIError",
    "ValidationError",
    "DimensionError",
    "MissingDataError",
    "NumericalError",
    "ConvergenceError",
    "InsufficientSampleSizeError",
    "TooManyCandidatesError",
    "EmptySelectionError",
    "FittingCancelled",
]
