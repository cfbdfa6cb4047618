"""
Random-intercept structure: grouping factors, Z matrix and Λ_θ.

Every candidate model in an enumeration shares the same random-effects
structure: one random intercept per grouping factor, e.g. (1 | site) or
(1 | region) + (1 | site). For intercepts only, the relative covariance
factor Λ_θ is diagonal, with θ_k (the random-intercept SD relative to the
residual scale) repeated once per level of factor k. It is therefore
stored as a vector.

The θ parameterization follows Bates et al. (2015).
"""

from __future__ import annotations

from dataclasses import dataclass
import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class RandomIntercept:
    """One grouping factor's random intercept.

    Attributes:
        group_name: Name of the grouping factor (e.g. 'site').
        levels: Sorted unique level labels.
        group_ids: 0-indexed level of each observation, shape (n,).
        n_groups: Number of levels (J).
    """
    group_name: str
    levels: tuple
    group_ids: NDArray
    n_groups: int


def parse_groups(groups: dict[str, NDArray], n: int) -> list[RandomIntercept]:
    """Map each grouping factor's labels to consecutive integer ids."""
    specs = []
    for name, labels in groups.items():
        labels = np.asarray(labels)
        if labels.shape[0] != n:
            raise ValueError(
                f"Group '{name}' has {labels.shape[0]} elements, expected {n}"
            )
        levels, ids = np.unique(labels, return_inverse=True)
        specs.append(RandomIntercept(
            group_name=name,
            levels=tuple(levels.tolist()),
            group_ids=ids.ravel(),
            n_groups=len(levels),
        ))
    return specs


def build_z_matrix(specs: list[RandomIntercept], n: int) -> NDArray:
    """Indicator design matrix Z = [Z_1 | Z_2 | ...], shape (n, Σ J_k)."""
    if not specs:
        raise ValueError("At least one grouping factor required")
    Z = np.zeros((n, sum(s.n_groups for s in specs)), dtype=np.float64)
    offset = 0
    rows = np.arange(n)
    for spec in specs:
        Z[rows, offset + spec.group_ids] = 1.0
        offset += spec.n_groups
    return Z


def expand_theta(theta: NDArray, specs: list[RandomIntercept]) -> NDArray:
    """Diagonal of Λ_θ: θ_k repeated J_k times."""
    return np.repeat(np.asarray(theta, dtype=np.float64), [s.n_groups for s in specs])


def split_by_group(b: NDArray, specs: list[RandomIntercept]) -> dict[str, dict]:
    """Split the stacked conditional modes into group -> {level: value}."""
    out = {}
    offset = 0
    for spec in specs:
        block = b[offset:offset + spec.n_groups]
        out[spec.group_name] = {
            level: float(v) for level, v in zip(spec.levels, block)
        }
        offset += spec.n_groups
    return out
