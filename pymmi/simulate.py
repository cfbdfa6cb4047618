"""
Simulated responses for teaching and testing.

Keeps the real predictor and grouping columns of a dataset and replaces
the response with draws from the global model:

    η = Xβ + Σ_g b_g[level],   b_g ~ N(0, σ_g²)
    y ~ family(linkinv(η))
"""

from __future__ import annotations

from typing import Mapping
import numpy as np

from pymmi.core.datasource import DataSource
from pymmi.core.exceptions import ValidationError
from pymmi.model.frame import ModelFrame
from pymmi.model.specification import GlobalModel


def simulate_response(
    data: DataSource,
    global_model: GlobalModel,
    coefficients: Mapping[str, float],
    *,
    group_sd: Mapping[str, float] | float = 0.0,
    seed: int | np.random.Generator | None = None,
    residual_sd: float = 1.0,
) -> DataSource:
    """Replace the response column with draws from the global model.

    Args:
        data: Predictor and grouping columns. The response column may be
            absent; if present it is overwritten in the returned copy.
        global_model: Model whose design, groups and family are used.
        coefficients: Coefficient name → value, e.g.
            {'(Intercept)': 1.0, 'treatmentmulch': 0.5}. Names not given
            are 0.
        group_sd: Random-intercept SD per grouping factor, or one SD for
            all of them.
        seed: Seed or Generator for reproducible draws.
        residual_sd: Residual SD for the gaussian family.

    Returns:
        New DataSource with the simulated response.
    """
    response = global_model.response
    n = data.n_observations
    base = data.with_columns(**{response: np.zeros(n)})
    frame = ModelFrame.build(global_model, base)
    dm = frame.design_matrix(global_model.terms)

    unknown = set(coefficients) - set(dm.coef_names)
    if unknown:
        raise ValidationError(
            f"unknown coefficient(s) {sorted(unknown)}; available: {list(dm.coef_names)}"
        )
    beta = np.array([float(coefficients.get(name, 0.0)) for name in dm.coef_names])

    if isinstance(group_sd, Mapping):
        missing = [g for g in global_model.groups if g not in group_sd]
        if missing:
            raise ValidationError(f"group_sd missing grouping factor(s) {missing}")
        sds = {g: float(group_sd[g]) for g in global_model.groups}
    else:
        sds = {g: float(group_sd) for g in global_model.groups}
    if any(sd < 0 for sd in sds.values()):
        raise ValidationError(f"group_sd must be >= 0, got {sds}")

    rng = seed if isinstance(seed, np.random.Generator) else np.random.default_rng(seed)

    eta = dm.X @ beta
    for g in global_model.groups:
        levels, idx = np.unique(frame.groups[g], return_inverse=True)
        b = rng.normal(0.0, sds[g], size=len(levels))
        eta = eta + b[idx]

    family = global_model.family
    y = family.sample(rng, family.link.linkinv(eta), scale=residual_sd)
    return data.with_columns(**{response: y})
