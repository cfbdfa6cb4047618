"""
Shared types for model selection.
"""

from __future__ import annotations

from dataclasses import dataclass
import numpy as np
from numpy.typing import ArrayLike, NDArray

from pymmi.core.exceptions import ConvergenceError, ValidationError
from pymmi.core.validation import check_1d, check_finite
from pymmi.fitting.fitted import FittedModel
from pymmi.model.specification import CandidateModel, GlobalModel
from pymmi.model.terms import Term


@dataclass(frozen=True)
class RankedEntry:
    """One converged candidate with its score.

    Attributes:
        fitted: The fitted model.
        criterion_value: AIC / AICc / BIC.
        delta: criterion_value minus the best value in the ranked set.
        weight: Akaike weight over the ranked set.
        rank: 1-based position (1 = best).
    """
    fitted: FittedModel
    criterion_value: float
    delta: float
    weight: float
    rank: int

    @property
    def candidate(self) -> CandidateModel:
        return self.fitted.candidate

    @property
    def df(self) -> int:
        return self.fitted.df

    @property
    def log_likelihood(self) -> float:
        return self.fitted.log_likelihood


@dataclass(frozen=True)
class FailedCandidate:
    """A candidate whose fit did not converge."""
    candidate: CandidateModel
    error: ConvergenceError

    @property
    def message(self) -> str:
        return str(self.error)


@dataclass(frozen=True)
class SelectionParams:
    """Parameter payload for a dredge run."""
    global_model: GlobalModel
    entries: tuple[RankedEntry, ...]
    failed: tuple[FailedCandidate, ...]
    criterion: str
    nobs: int | None
    terms: tuple[Term, ...]


def akaike_weights(values: ArrayLike) -> tuple[NDArray, NDArray]:
    """Differences to the minimum and Akaike weights.

    w_i = exp(−Δ_i/2) / Σ_j exp(−Δ_j/2). Since Δ ≥ 0 the largest
    exponent is 0, so the sum never underflows to zero.

    Returns:
        (delta, weights), in input order.
    """
    v = np.asarray(values, dtype=np.float64)
    check_1d(v, 'values')
    if v.size == 0:
        raise ValidationError("values: need at least one criterion value")
    check_finite(v, 'values')

    delta = v - v.min()
    rel = np.exp(-0.5 * delta)
    return delta, rel / rel.sum()
