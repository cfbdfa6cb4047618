"""
FittedModel: what a fitter hands back for one candidate.

Only what ranking and averaging need is kept: coefficients with their
standard errors, log-likelihood, parameter count and, for predictions,
the family and the random-intercept conditional modes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import numpy as np
from numpy.typing import NDArray

from pymmi.core.datasource import DataSource
from pymmi.core.exceptions import ValidationError
from pymmi.families import Family
from pymmi.model.frame import ModelFrame
from pymmi.model.specification import CandidateModel


@dataclass(frozen=True)
class FittedModel:
    """A candidate model fitted to data.

    Attributes:
        candidate: The candidate specification that was fitted.
        coef_names: Fixed-effect coefficient names, intercept first.
        coef_terms: Owning term of each coefficient.
        coefficients: Point estimates β̂.
        se: Standard errors of β̂.
        log_likelihood: Maximized (marginal) log-likelihood.
        df: Number of estimated parameters, including variance components
            and any dispersion parameter.
        nobs: Number of level-1 observations used.
        converged: Convergence flag reported by the fitter.
        family: Error family; defaults to the global model's.
        ranef: Grouping factor → {level: conditional mode}.
        vcov: Covariance of β̂, if the fitter provides it.
        aliased: Design columns dropped as not estimable; they have no
            coefficient here and count as absent when averaging.
        frame: The ModelFrame the model was fitted on, if known.
    """
    candidate: CandidateModel
    coef_names: tuple[str, ...]
    coef_terms: tuple[str, ...]
    coefficients: NDArray
    se: NDArray
    log_likelihood: float
    df: int
    nobs: int
    converged: bool = True
    family: Family | None = None
    ranef: dict[str, dict] = field(default_factory=dict)
    vcov: NDArray | None = None
    aliased: tuple[str, ...] = ()
    frame: ModelFrame | None = field(default=None, repr=False, compare=False)

    def __post_init__(self):
        coefficients = np.asarray(self.coefficients, dtype=np.float64)
        se = np.asarray(self.se, dtype=np.float64)
        p = len(self.coef_names)
        if coefficients.shape != (p,) or se.shape != (p,) or len(self.coef_terms) != p:
            raise ValidationError(
                f"FittedModel: {p} coefficient names but coefficients {coefficients.shape}, "
                f"se {se.shape}, terms {len(self.coef_terms)}"
            )
        object.__setattr__(self, 'coefficients', coefficients)
        object.__setattr__(self, 'se', se)
        if self.family is None:
            object.__setattr__(self, 'family', self.candidate.global_model.family)

    @property
    def coef(self) -> dict[str, float]:
        return dict(zip(self.coef_names, self.coefficients.tolist()))

    def estimate(self, name: str) -> tuple[float, float] | None:
        """(β̂, SE) for a coefficient, or None if the model lacks it."""
        try:
            i = self.coef_names.index(name)
        except ValueError:
            return None
        return float(self.coefficients[i]), float(self.se[i])

    def predict(
        self,
        data: DataSource | None = None,
        *,
        frame: ModelFrame | None = None,
        include_random: bool = False,
        type: str = 'response',
    ) -> NDArray:
        """Predictions for the frame's data or for new data.

        Args:
            data: New data. Default: the fitting data.
            frame: ModelFrame supplying the factor coding. Default: the
                one the model was fitted on.
            include_random: Add each row's random-intercept conditional
                mode (0 for levels not seen in fitting). Default: population
                level predictions.
            type: 'response' (inverse link applied) or 'link'.
        """
        if type not in ('response', 'link'):
            raise ValidationError(f"type must be 'response' or 'link', got {type!r}")
        if frame is None:
            frame = self.frame
        if frame is None:
            raise ValidationError("predict needs the ModelFrame the model was fitted on")

        dm = frame.design_matrix(self.candidate.terms, data)
        names = tuple(n for n in dm.coef_names if n not in self.aliased)
        if names != tuple(self.coef_names):
            raise ValidationError(
                f"design columns {dm.coef_names} do not match fitted coefficients "
                f"{self.coef_names}"
            )
        keep = [j for j, n in enumerate(dm.coef_names) if n not in self.aliased]
        eta = dm.X[:, keep] @ self.coefficients

        if include_random:
            source = frame.data if data is None else data
            source.require(self.ranef)
            for group, modes in self.ranef.items():
                labels = source[group]
                eta = eta + np.array([modes.get(level, 0.0) for level in labels])

        if type == 'link':
            return eta
        return self.family.link.linkinv(eta)
