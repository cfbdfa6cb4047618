"""
Design validation for the GLMM fitter.

MixedDesign validates and organizes the arrays a single fit needs: the
response y, the fixed effects matrix X (intercept column included by the
caller) and one label array per random-intercept grouping factor.
"""

from __future__ import annotations

from dataclasses import dataclass
import numpy as np
from numpy.typing import NDArray
import scipy.linalg as sla

from pymmi.core.exceptions import ValidationError
from pymmi.core.validation import (
    check_array, check_finite, check_1d, check_consistent_length, check_min_samples,
)


@dataclass(frozen=True)
class MixedDesign:
    """Validated design for one GLMM fit.

    Attributes:
        y: Response vector (n,).
        X: Fixed effects design matrix (n, p).
        groups: Grouping factor name → labels (n,).
        n: Number of observations.
        p: Number of fixed effect columns.
    """
    y: NDArray
    X: NDArray
    groups: dict[str, NDArray]
    n: int
    p: int

    @staticmethod
    def validate(y, X, groups: dict) -> 'MixedDesign':
        """Validate inputs and create a MixedDesign.

        Raises:
            ValidationError: On invalid inputs.
        """
        y = check_array(y, "y").ravel()
        check_finite(y, "y")
        check_min_samples(y, 3, "y")
        n = y.shape[0]

        X = check_array(X, "X")
        if X.ndim == 1:
            X = X.reshape(-1, 1)
        check_consistent_length(y, X, names=("y", "X"))
        check_finite(X, "X")
        p = X.shape[1]
        if p >= n:
            raise ValidationError(
                f"X has {p} columns but only {n} observations"
            )

        if not groups:
            raise ValidationError("At least one grouping factor required")

        validated = {}
        for name, g in groups.items():
            g = np.asarray(g)
            check_1d(g, f"group '{name}'")
            check_consistent_length(y, g, names=("y", f"group '{name}'"))
            n_levels = len(np.unique(g))
            if n_levels < 2:
                raise ValidationError(
                    f"Group '{name}' has only {n_levels} level(s), need at least 2"
                )
            validated[name] = g

        return MixedDesign(y=y, X=X, groups=validated, n=n, p=p)

    def without_columns(self, drop: tuple[int, ...]) -> 'MixedDesign':
        """Copy with the given X columns removed."""
        keep = [j for j in range(self.p) if j not in drop]
        return MixedDesign(y=self.y, X=self.X[:, keep], groups=self.groups,
                           n=self.n, p=len(keep))


def aliased_columns(X: NDArray, tol: float = 1e-7) -> tuple[int, ...]:
    """Indices of X columns that are linear combinations of earlier ones.

    Uses an unpivoted QR decomposition: |R[j, j]| is the distance of
    column j from the span of the columns before it, so a column is
    aliased when that distance is below ``tol`` times its own norm.
    Earlier columns are always kept, as lme4 does when it drops columns
    from a rank-deficient fixed-effect model matrix.
    """
    if X.shape[1] == 0:
        return ()
    R = sla.qr(X, mode='r')[0]
    diag = np.abs(np.diag(R))
    norms = np.linalg.norm(X, axis=0)
    return tuple(int(j) for j in np.flatnonzero(diag <= tol * norms))
