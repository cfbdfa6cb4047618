"""
Shared types for model averaging.
"""

from __future__ import annotations

from dataclasses import dataclass
from numpy.typing import NDArray

from pymmi.selection.topset import TopSet


@dataclass(frozen=True)
class AveragedCoefficient:
    """Model-averaged estimate of one coefficient.

    Attributes:
        name: Coefficient name ('landuseforest', 'elevation:treatment', ...).
        term: Owning term name.
        full: Full ("zero") average: Σ w′ β̂ with β̂ = 0 where absent.
        conditional: Average over the models containing the coefficient.
        se_full: Unconditional SE of the full average.
        se_conditional: Unconditional SE of the conditional average.
        ci_full: (lower, upper) Wald interval for the full average.
        ci_conditional: (lower, upper) Wald interval for the conditional average.
        importance: Summed top-set weight of models containing the term.
        n_models: Number of top-set models containing the coefficient.
    """
    name: str
    term: str
    full: float
    conditional: float
    se_full: float
    se_conditional: float
    ci_full: tuple[float, float]
    ci_conditional: tuple[float, float]
    importance: float
    n_models: int

    @property
    def var_full(self) -> float:
        return self.se_full ** 2

    @property
    def var_conditional(self) -> float:
        return self.se_conditional ** 2


@dataclass(frozen=True)
class AveragingParams:
    """Parameter payload for a model average."""
    top_set: TopSet
    coefficients: tuple[AveragedCoefficient, ...]
    importance: dict[str, float]
    weights: NDArray
    level: float
