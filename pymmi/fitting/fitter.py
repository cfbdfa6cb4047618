"""
The model-fitter seam.

Enumeration only needs something that turns (candidate, frame) into a
FittedModel, raising ConvergenceError when the fit fails. GLMMFitter is
the default, built on pymmi.mixed.glmm; tests substitute fakes with
canned outputs.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from pymmi.core.exceptions import ConvergenceError
from pymmi.fitting.fitted import FittedModel
from pymmi.mixed import glmm
from pymmi.model.frame import ModelFrame
from pymmi.model.specification import CandidateModel


@runtime_checkable
class ModelFitter(Protocol):
    """Anything that can fit a candidate model to a model frame."""

    def fit(self, candidate: CandidateModel, frame: ModelFrame) -> FittedModel:
        """Fit one candidate.

        Must not mutate ``frame``. Raises ConvergenceError when the fit
        does not converge.
        """
        ...


class GLMMFitter:
    """Fits candidates as random-intercept GLMMs by maximum likelihood.

    Args:
        tol: Optimizer / PIRLS tolerance.
        max_iter: Maximum outer optimizer iterations.
        pirls_max_iter: Maximum PIRLS iterations per deviance evaluation.
    """

    def __init__(self, *, tol: float = 1e-8, max_iter: int = 200, pirls_max_iter: int = 25):
        self.tol = tol
        self.max_iter = max_iter
        self.pirls_max_iter = pirls_max_iter

    def fit(self, candidate: CandidateModel, frame: ModelFrame) -> FittedModel:
        dm = frame.design_matrix(candidate.terms)
        try:
            solution = glmm(
                frame.y,
                dm.X,
                frame.groups,
                family=frame.global_model.family,
                coef_names=dm.coef_names,
                tol=self.tol,
                max_iter=self.max_iter,
                pirls_max_iter=self.pirls_max_iter,
                on_failure='raise',
            )
        except ConvergenceError as e:
            raise ConvergenceError(
                f"candidate {candidate.index} ({candidate.label}): {e}",
                iterations=e.iterations,
                reason=e.reason,
                candidate_index=candidate.index,
            ) from e

        term_of = dict(zip(dm.coef_names, dm.coef_terms))
        names = solution.params.coefficient_names
        return FittedModel(
            candidate=candidate,
            coef_names=names,
            coef_terms=tuple(term_of[n] for n in names),
            coefficients=solution.coefficients,
            se=solution.se,
            log_likelihood=solution.log_likelihood,
            df=solution.df,
            nobs=solution.n_obs,
            converged=solution.converged,
            family=solution.params.family,
            ranef=solution.ranef,
            vcov=solution.vcov,
            aliased=solution.aliased,
            frame=frame,
        )

    def __repr__(self) -> str:
        return f"GLMMFitter(tol={self.tol}, max_iter={self.max_iter})"
