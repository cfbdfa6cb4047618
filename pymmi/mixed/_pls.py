"""
Penalized weighted least squares (PWLS) for random-intercept models.

For fixed θ this solves

    minimize ‖√W (y − Xβ − ZΛu)‖² + ‖u‖²

for the fixed effects β and the spherical random effects u (b = Λu).
Because Λ is diagonal here, ZΛ is Z with its columns scaled by λ.

References:
    Bates, D., Maechler, M., Bolker, B., & Walker, S. (2015).
    Fitting Linear Mixed-Effects Models Using lme4.
    Journal of Statistical Software, 67(1), 1-48. Section 2.
"""

from __future__ import annotations

from dataclasses import dataclass
import numpy as np
from numpy.typing import NDArray
import scipy.linalg as sla

from pymmi.core.exceptions import ConvergenceError


@dataclass(frozen=True)
class PLSResult:
    """Result from one penalized least squares solve.

    Attributes:
        beta: Fixed effects estimates (p,).
        u: Spherical random effects (q,).
        b: Conditional modes b = Λu (q,).
        pwrss: Penalized weighted RSS ‖√W(y − Xβ − Zb)‖² + ‖u‖².
        L: Lower Cholesky factor of Λ'Z'WZΛ + I, shape (q, q).
        RX: Lower Cholesky factor of the Schur complement for β, shape (p, p).
    """
    beta: NDArray
    u: NDArray
    b: NDArray
    pwrss: float
    L: NDArray
    RX: NDArray

    def log_det_L(self) -> float:
        """log|L|² = 2 Σ log diag(L)."""
        return 2.0 * float(np.sum(np.log(np.maximum(np.diag(self.L), 1e-20))))

    def beta_vcov(self) -> NDArray:
        """(RX RX')⁻¹, the unscaled covariance of β̂."""
        p = self.RX.shape[0]
        return sla.cho_solve((self.RX, True), np.eye(p))


def solve_pls(
    X: NDArray,
    Z: NDArray,
    y: NDArray,
    lam: NDArray,
    weights: NDArray | None = None,
) -> PLSResult:
    """Solve the penalized (weighted) least squares problem.

    The normal equations

        [Λ'Z'WZΛ + I   Λ'Z'WX] [u]   [Λ'Z'Wy]
        [X'WZΛ         X'WX  ] [β] = [X'Wy  ]

    are solved block-wise: u is eliminated through L, β through the
    Cholesky factor RX of the Schur complement.

    Args:
        X: Fixed effects design matrix (n, p).
        Z: Random effects indicator matrix (n, q).
        y: Response (or PIRLS working response) (n,).
        lam: Diagonal of Λ_θ (q,).
        weights: Observation weights (n,). If None, unit weights.

    Returns:
        PLSResult.

    Raises:
        ConvergenceError: The Schur complement for β is not positive
            definite.
    """
    q = Z.shape[1]

    if weights is not None:
        sqrt_w = np.sqrt(weights)
        Xw = X * sqrt_w[:, np.newaxis]
        Zw = Z * sqrt_w[:, np.newaxis]
        yw = y * sqrt_w
    else:
        Xw, Zw, yw = X, Z, y

    ZLam = Zw * lam[np.newaxis, :]

    LtL = ZLam.T @ ZLam + np.eye(q)
    L = np.linalg.cholesky(LtL)

    ZLam_t_y = ZLam.T @ yw
    ZLam_t_X = ZLam.T @ Xw

    cu = sla.solve_triangular(L, ZLam_t_y, lower=True)
    CX = sla.solve_triangular(L, ZLam_t_X, lower=True)

    RtR = Xw.T @ Xw - CX.T @ CX
    rhs_beta = Xw.T @ yw - CX.T @ cu

    # X must have full column rank; glmm() drops aliased columns first
    try:
        RX = np.linalg.cholesky(RtR)
    except np.linalg.LinAlgError as e:
        raise ConvergenceError(
            "fixed-effect cross-product is not positive definite "
            "(numerically rank-deficient X)",
            reason=str(e),
        ) from e
    tmp = sla.solve_triangular(RX, rhs_beta, lower=True)
    beta = sla.solve_triangular(RX.T, tmp, lower=False)

    cu_final = sla.solve_triangular(L, ZLam_t_y - ZLam_t_X @ beta, lower=True)
    u = sla.solve_triangular(L.T, cu_final, lower=False)
    b = lam * u

    resid = yw - Xw @ beta - Zw @ b
    pwrss = float(resid @ resid) + float(u @ u)

    return PLSResult(beta=beta, u=u, b=b, pwrss=pwrss, L=L, RX=RX)
