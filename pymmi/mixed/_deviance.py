"""
Objective functions minimized over θ by the outer optimizer.

Gaussian responses use the profiled ML deviance (β and σ² are profiled
out in closed form). Other families use the Laplace approximation to
the marginal deviance around the PIRLS conditional modes. ML rather than
REML is used throughout because candidate models differ in their fixed
effects and must be compared on the same likelihood.

References:
    Bates, D., Maechler, M., Bolker, B., & Walker, S. (2015).
    Fitting Linear Mixed-Effects Models Using lme4.
    Journal of Statistical Software, 67(1), Sections 2-3.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from pymmi.families import Family
from pymmi.mixed._random_effects import RandomIntercept, expand_theta
from pymmi.mixed._pls import solve_pls
from pymmi.mixed._pirls import solve_pirls


def profiled_deviance_ml(
    theta: NDArray,
    X: NDArray,
    Z: NDArray,
    y: NDArray,
    specs: list[RandomIntercept],
) -> float:
    """Profiled ML deviance of a linear mixed model.

        d(θ) = log|L_θ|² + n [1 + log(2π · pwrss / n)]
    """
    n = X.shape[0]
    pls = solve_pls(X, Z, y, expand_theta(theta, specs))
    return float(pls.log_det_L() + n * (1.0 + np.log(2.0 * np.pi * pls.pwrss / n)))


def laplace_deviance(
    theta: NDArray,
    X: NDArray,
    Z: NDArray,
    y: NDArray,
    specs: list[RandomIntercept],
    family: Family,
    pirls_tol: float = 1e-8,
    pirls_max_iter: int = 25,
) -> float:
    """Laplace-approximated deviance of a GLMM.

        d(θ) = deviance(y, μ̂) + ‖û‖² + log|L_θ|²
    """
    pirls = solve_pirls(X, Z, y, expand_theta(theta, specs), family,
                        tol=pirls_tol, max_iter=pirls_max_iter)
    penalty = float(pirls.pls.u @ pirls.pls.u)
    return pirls.deviance + penalty + pirls.pls.log_det_L()
