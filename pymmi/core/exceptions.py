"""
Exception hierarchy for PyMMI.

All exceptions inherit from PyMMIError to allow catching any
library-specific error. Pipeline stages raise the most specific class
available so callers can tell a bad input apart from a model that
cannot be scored.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
"""


class PyMMIError(Exception):
    """Base exception for all PyMMI errors."""
    pass


class ValidationError(PyMMIError):
    """
    Input validation failed.

    Raised when user-provided inputs fail validation checks.
    """
    pass


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.

    Raised when columns or arrays that must line up row-for-row do not.
    """
    pass


class MissingDataError(ValidationError):
    """
    A required column is absent or contains missing values.

    Rows are never dropped silently: a single missing value in any column
    used by the global model fails the whole analysis.

    Attributes:
        column: Name of the offending column
        n_missing: Number of missing values, or None if the column is absent
    """

    def __init__(
        self,
        message: str,
        column: str | None = None,
        n_missing: int | None = None,
    ):
        super().__init__(message)
        self.column = column
        self.n_missing = n_missing


class NumericalError(PyMMIError):
    """
    Numerical computation failed.

    Base class for errors arising from numerical issues during computation.
    """
    pass


class ConvergenceError(PyMMIError):
    """
    A model fit failed to converge.

    Raised by fitters when the optimizer or the PIRLS inner loop stops
    without meeting its convergence criteria. During enumeration this is
    recovered per candidate: the candidate is recorded as failed and
    excluded from ranking.

    Attributes:
        iterations: Number of iterations completed
        reason: Why convergence failed (optimizer message)
        candidate_index: Enumeration index of the candidate, if known
    """

    def __init__(
        self,
        message: str,
        iterations: int | None = None,
        reason: str | None = None,
        candidate_index: int | None = None,
    ):
        super().__init__(message)
        self.iterations = iterations
        self.reason = reason
        self.candidate_index = candidate_index


class InsufficientSampleSizeError(PyMMIError):
    """
    Information criterion is undefined for the given sample size.

    For AICc this means n - k - 1 <= 0: the small-sample penalty would be
    infinite or negative. Pick another criterion or a smaller global model.

    Attributes:
        n: Effective sample size used
        k: Number of estimated parameters
        criterion: Name of the criterion requested
    """

    def __init__(self, message: str, n: float, k: int, criterion: str):
        super().__init__(message)
        self.n = n
        self.k = k
        self.criterion = criterion


class TooManyCandidatesError(PyMMIError):
    """
    Enumeration would produce more candidate models than allowed.

    Raised before any model is fitted.

    Attributes:
        n_terms: Number of non-fixed terms in the global model
        limit: The configured candidate ceiling
        n_candidates: Valid candidates counted when enumeration stopped
    """

    def __init__(self, message: str, n_terms: int, limit: int, n_candidates: int):
        super().__init__(message)
        self.n_terms = n_terms
        self.limit = limit
        self.n_candidates = n_candidates


class EmptySelectionError(PyMMIError):
    """
    Top-set selection produced no models.

    Attributes:
        threshold: The delta threshold (or cumulative-weight level) requested
        n_ranked: Number of ranked entries the selection was applied to
    """

    def __init__(self, message: str, threshold: float, n_ranked: int):
        super().__init__(message)
        self.threshold = threshold
        self.n_ranked = n_ranked


class FittingCancelled(PyMMIError):
    """
    The caller requested early termination of an enumeration run.

    Attributes:
        n_completed: Number of candidate fits finished before cancellation
    """

    def __init__(self, message: str, n_completed: int):
        super().__init__(message)
        self.n_completed = n_completed
