"""
Penalized Iteratively Reweighted Least Squares (PIRLS) for GLMM.

For given θ, PIRLS finds the conditional modes of the random effects
(and the fixed effects) by solving a sequence of penalized weighted least
squares problems on the working response. A step that increases the
penalized deviance is halved back towards the previous iterate.

References:
    Bates, D., Maechler, M., Bolker, B., & Walker, S. (2015).
    Fitting Linear Mixed-Effects Models Using lme4.
    Journal of Statistical Software, 67(1), Section 3.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import numpy as np
from numpy.typing import NDArray

from pymmi.families import Family
from pymmi.mixed._pls import solve_pls, PLSResult

_MAX_HALVINGS = 10


@dataclass(frozen=True)
class PIRLSResult:
    """Result from PIRLS.

    Attributes:
        pls: The final PLS solve (beta, u, b, L, RX).
        mu: Fitted values on the response scale (n,).
        eta: Linear predictor Xβ + Zb (n,).
        deviance: Family deviance at the final iterate.
        converged: Whether the relative change fell below tol.
        n_iter: Number of PIRLS iterations run.
    """
    pls: PLSResult
    mu: NDArray
    eta: NDArray
    deviance: float
    converged: bool
    n_iter: int


def solve_pirls(
    X: NDArray,
    Z: NDArray,
    y: NDArray,
    lam: NDArray,
    family: Family,
    tol: float = 1e-8,
    max_iter: int = 25,
) -> PIRLSResult:
    """Penalized IRLS for a GLMM at fixed θ.

    Iterates:

    1. working response z = η + (y − μ) / (dμ/dη)
    2. working weights  w = (dμ/dη)² / V(μ)
    3. penalized WLS for β and u
    4. η = Xβ + ZΛu, μ = g⁻¹(η), halving the step while the
       penalized deviance deviance(y, μ) + ‖u‖² increases

    Args:
        X: Fixed effects design matrix (n, p).
        Z: Random effects indicator matrix (n, q).
        y: Response (n,).
        lam: Diagonal of Λ_θ (q,).
        family: GLM family.
        tol: Convergence tolerance on relative penalized-deviance change.
        max_iter: Maximum PIRLS iterations.
    """
    link = family.link

    mu = family.initialize(y)
    eta = link.link(mu)
    pdev_old = family.deviance(y, mu)
    prev: PLSResult | None = None
    pls_result: PLSResult | None = None
    converged = False
    n_iter = 0

    for n_iter in range(1, max_iter + 1):
        mu_eta_val = link.mu_eta(eta)
        z = eta + (y - mu) / mu_eta_val
        w = np.maximum(mu_eta_val ** 2 / family.variance(mu), 1e-10)

        pls_result = solve_pls(X, Z, z, lam, weights=w)
        eta = X @ pls_result.beta + Z @ pls_result.b
        mu = link.linkinv(eta)
        pdev = family.deviance(y, mu) + float(pls_result.u @ pls_result.u)

        if prev is not None:
            for _ in range(_MAX_HALVINGS):
                if pdev <= pdev_old or not np.isfinite(pdev_old):
                    break
                beta = 0.5 * (prev.beta + pls_result.beta)
                u = 0.5 * (prev.u + pls_result.u)
                pls_result = replace(pls_result, beta=beta, u=u, b=lam * u)
                eta = X @ beta + Z @ pls_result.b
                mu = link.linkinv(eta)
                pdev = family.deviance(y, mu) + float(u @ u)

        if abs(pdev - pdev_old) / (abs(pdev_old) + 0.1) < tol:
            converged = True
            pdev_old = pdev
            break
        pdev_old = pdev
        prev = pls_result

    if pls_result is None:
        raise RuntimeError("PIRLS failed to produce a result")

    return PIRLSResult(
        pls=pls_result,
        mu=mu,
        eta=eta,
        deviance=family.deviance(y, mu),
        converged=converged,
        n_iter=n_iter,
    )
