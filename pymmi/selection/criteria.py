"""
Information criteria.

    AIC  = 2k − 2·logLik
    AICc = AIC + 2k(k+1) / (n − k − 1)
    BIC  = k·ln(n) − 2·logLik

k counts every estimated parameter (fixed effects, variance components,
dispersion). n is the effective sample size, which for multilevel data
is a modelling decision and therefore always supplied by the caller; see
resolve_nobs().
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray

from pymmi.core.exceptions import InsufficientSampleSizeError, ValidationError
from pymmi.fitting.fitted import FittedModel
from pymmi.model.frame import ModelFrame

CRITERIA = ('AIC', 'AICc', 'BIC')


def normalize_criterion(kind: str) -> str:
    """Map a case-insensitive name onto 'AIC', 'AICc' or 'BIC'."""
    lookup = {c.lower(): c for c in CRITERIA}
    try:
        return lookup[str(kind).lower()]
    except KeyError:
        raise ValidationError(f"criterion must be one of {CRITERIA}, got {kind!r}") from None


def aic(log_likelihood: float, k: int) -> float:
    return 2.0 * k - 2.0 * log_likelihood


def aicc(log_likelihood: float, k: int, n: float) -> float:
    denom = n - k - 1
    if denom <= 0:
        raise InsufficientSampleSizeError(
            f"AICc undefined: n - k - 1 = {n} - {k} - 1 <= 0",
            n=n, k=k, criterion='AICc',
        )
    return aic(log_likelihood, k) + 2.0 * k * (k + 1) / denom


def bic(log_likelihood: float, k: int, n: float) -> float:
    if n <= 0:
        raise InsufficientSampleSizeError(
            f"BIC undefined for n = {n}", n=n, k=k, criterion='BIC',
        )
    return k * np.log(n) - 2.0 * log_likelihood


def score(fitted: FittedModel, n: float | None, kind: str = 'AICc') -> float:
    """Criterion value of a fitted model. ``n`` is ignored for AIC."""
    kind = normalize_criterion(kind)
    if kind == 'AIC':
        return float(aic(fitted.log_likelihood, fitted.df))
    if n is None:
        raise ValidationError(f"{kind} requires the effective sample size n")
    if kind == 'AICc':
        return float(aicc(fitted.log_likelihood, fitted.df, n))
    return float(bic(fitted.log_likelihood, fitted.df, n))


def resolve_nobs(nobs: int | str, frame: ModelFrame) -> int:
    """Turn the caller's sample-size choice into a number.

    Args:
        nobs: An integer; 'observations' for the number of rows; or the
            name of a grouping factor, meaning its number of levels
            (e.g. 'site' when sites are the independent units).
        frame: The model frame the candidates are fitted on.
    """
    if isinstance(nobs, bool):
        raise ValidationError(f"nobs must be an int or a name, got {nobs!r}")
    if isinstance(nobs, (int, np.integer)):
        return int(nobs)
    if isinstance(nobs, str):
        if nobs == 'observations':
            return frame.n
        if nobs in frame.groups:
            return frame.n_levels(nobs)
        raise ValidationError(
            f"nobs {nobs!r} is neither 'observations' nor a grouping factor "
            f"{list(frame.groups)}"
        )
    raise ValidationError(f"nobs must be an int or a name, got {type(nobs).__name__}")


def rank_order(values: ArrayLike) -> NDArray:
    """Indices sorting ``values`` ascending; ties keep their input order."""
    return np.argsort(np.asarray(values, dtype=np.float64), kind='stable')
