"""
Solution wrapper for a fitted GLMM.

GLMMSolution wraps Result[GLMMParams] and provides an lme4-style
summary, property accessors and an overdispersion check for count
models.
"""

from __future__ import annotations

from numpy.typing import NDArray
import numpy as np
from scipy import stats

from pymmi.core.result import Result
from pymmi.mixed._common import GLMMParams, VarCompSummary


def _significance_stars(p: float) -> str:
    """Return significance stars like R."""
    if p < 0.001:
        return '***'
    elif p < 0.01:
        return '**'
    elif p < 0.05:
        return '*'
    elif p < 0.1:
        return '.'
    else:
        return ' '


def _format_pvalue(p: float) -> str:
    """Format p-value like R."""
    if p < 2e-16:
        return '< 2e-16'
    elif p < 0.001:
        return f'{p:.2e}'
    else:
        return f'{p:.4f}'


class GLMMSolution:
    """Solution wrapper for a fitted random-intercept GLMM.

    Inference on fixed effects uses Wald z-statistics.
    """

    def __init__(self, _result: Result[GLMMParams]):
        self._result = _result

    @property
    def params(self) -> GLMMParams:
        return self._result.params

    @property
    def info(self) -> dict:
        return self._result.info

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    # --- Fixed effects ---

    @property
    def coefficients(self) -> NDArray:
        return self.params.coefficients

    @property
    def fixef(self) -> dict[str, float]:
        """Fixed effects as name → value dict."""
        return dict(zip(self.params.coefficient_names, self.params.coefficients.tolist()))

    @property
    def se(self) -> NDArray:
        return self.params.se

    @property
    def vcov(self) -> NDArray:
        return self.params.vcov

    @property
    def z_values(self) -> NDArray:
        return self.params.z_values

    @property
    def p_values(self) -> NDArray:
        return self.params.p_values

    @property
    def aliased(self) -> tuple[str, ...]:
        """Coefficients dropped because their X columns were aliased."""
        return self.params.aliased

    # --- Random effects ---

    @property
    def ranef(self) -> dict[str, dict]:
        """Conditional modes per grouping factor: group → {level: b̂}."""
        return self.params.random_effects

    @property
    def var_components(self) -> tuple[VarCompSummary, ...]:
        return self.params.var_components

    # --- Model fit ---

    @property
    def log_likelihood(self) -> float:
        return self.params.log_likelihood

    @property
    def df(self) -> int:
        """Number of estimated parameters (fixed + variance + dispersion)."""
        return self.params.df

    @property
    def deviance(self) -> float:
        return self.params.deviance

    @property
    def aic(self) -> float:
        return self.params.aic

    @property
    def bic(self) -> float:
        return self.params.bic

    @property
    def n_obs(self) -> int:
        return self.params.n_obs

    @property
    def fitted_values(self) -> NDArray:
        """Fitted values on the response scale (μ̂)."""
        return self.params.fitted_values

    @property
    def linear_predictor(self) -> NDArray:
        return self.params.linear_predictor

    @property
    def residuals(self) -> NDArray:
        return self.params.residuals

    @property
    def converged(self) -> bool:
        return self.params.converged

    # --- Diagnostics ---

    def overdispersion(self) -> dict[str, float]:
        """Pearson χ² overdispersion check.

        ratio = Σ (y − μ̂)² / V(μ̂) divided by the residual df (n − df).
        Values well above 1 suggest the count model is overdispersed.
        Not meaningful for the gaussian family.

        Returns:
            {'chisq', 'ratio', 'rdf', 'p_value'}
        """
        params = self.params
        pearson = params.residuals / np.sqrt(params.family.variance(params.fitted_values))
        chisq = float(np.sum(pearson ** 2))
        rdf = params.n_obs - params.df
        ratio = chisq / rdf if rdf > 0 else float('nan')
        p_value = float(stats.chi2.sf(chisq, rdf)) if rdf > 0 else float('nan')
        return {'chisq': chisq, 'ratio': ratio, 'rdf': float(rdf), 'p_value': p_value}

    # --- Summary ---

    def summary(self) -> str:
        """lme4-style summary of the fit."""
        params = self.params
        family = params.family

        lines = []
        method = 'ML' if params.residual_variance is not None else 'ML (Laplace Approximation)'
        lines.append(f"Generalized linear mixed model fit by {method}")
        lines.append(f" Family: {family.name} ( {family.link.name} )")
        lines.append("")
        lines.append(
            f"     AIC      BIC   logLik deviance df.resid"
        )
        lines.append(
            f"{params.aic:8.1f} {params.bic:8.1f} {params.log_likelihood:8.1f} "
            f"{params.deviance:8.1f} {params.n_obs - params.df:8d}"
        )
        lines.append("")

        lines.append("Random effects:")
        lines.append(f" {'Groups':<12s} {'Name':<15s} {'Variance':>10s} {'Std.Dev.':>10s}")
        for vc in params.var_components:
            lines.append(
                f" {vc.group:<12s} {'(Intercept)':<15s} {vc.variance:10.4f} {vc.std_dev:10.4f}"
            )
        if params.residual_variance is not None:
            lines.append(
                f" {'Residual':<12s} {'':<15s} {params.residual_variance:10.4f} "
                f"{np.sqrt(params.residual_variance):10.4f}"
            )
        group_parts = ', '.join(f'{name}, {n}' for name, n in params.n_groups.items())
        lines.append(f"Number of obs: {params.n_obs}, groups:  {group_parts}")
        lines.append("")

        lines.append("Fixed effects:")
        lines.append(
            f" {'':>20s} {'Estimate':>10s} {'Std. Error':>10s} "
            f"{'z value':>10s} {'Pr(>|z|)':>10s}"
        )
        for i, name in enumerate(params.coefficient_names):
            p = params.p_values[i]
            lines.append(
                f" {name:>20s} {params.coefficients[i]:10.4f} {params.se[i]:10.4f} "
                f"{params.z_values[i]:10.3f} {_format_pvalue(p):>10s} {_significance_stars(p)}"
            )
        lines.append("---")
        lines.append("Signif. codes:  0 '***' 0.001 '**' 0.01 '*' 0.05 '.' 0.1 ' ' 1")
        if params.aliased:
            lines.append(
                f"fixed-effect model matrix is rank deficient so dropping "
                f"{len(params.aliased)} column(s): {', '.join(params.aliased)}"
            )

        if not params.converged:
            lines.append("")
            lines.append("WARNING: Model did not converge")

        return '\n'.join(lines)

    def __repr__(self) -> str:
        return (
            f"GLMMSolution({self.params.family.name}({self.params.family.link.name}), "
            f"n={self.params.n_obs}, "
            f"fixed={len(self.params.coefficients)}, "
            f"groups={list(self.params.n_groups)})"
        )
