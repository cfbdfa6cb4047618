"""
Shared fixtures for GLMM tests.

Datasets with known structure: y ~ x + (1 | group).
"""

import numpy as np
import pytest


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(2024)


@pytest.fixture
def glmm_poisson(rng):
    """Poisson counts, 25 groups × 8 = 200 observations.

    log μ = 1.0 + 0.5·x + b_group, b ~ N(0, 0.5²).
    """
    n_groups, per_group = 25, 8
    n = n_groups * per_group
    group = np.repeat(np.arange(n_groups), per_group)
    x = rng.normal(0, 1, size=n)
    b = rng.normal(0, 0.5, size=n_groups)
    y = rng.poisson(np.exp(1.0 + 0.5 * x + b[group])).astype(float)
    X = np.column_stack([np.ones(n), x])
    return {'y': y, 'X': X, 'group': group, 'x': x, 'beta': np.array([1.0, 0.5]),
            'sigma_group': 0.5, 'n_groups': n_groups}


@pytest.fixture
def glmm_binomial(rng):
    """Bernoulli responses, 30 groups × 10 = 300 observations.

    logit p = −0.5 + 1.0·x + b_group, b ~ N(0, 0.8²).
    """
    n_groups, per_group = 30, 10
    n = n_groups * per_group
    group = np.repeat(np.arange(n_groups), per_group)
    x = rng.normal(0, 1, size=n)
    b = rng.normal(0, 0.8, size=n_groups)
    p = 1.0 / (1.0 + np.exp(-(-0.5 + 1.0 * x + b[group])))
    y = rng.binomial(1, p).astype(float)
    X = np.column_stack([np.ones(n), x])
    return {'y': y, 'X': X, 'group': group, 'beta': np.array([-0.5, 1.0])}


@pytest.fixture
def lmm_gaussian(rng):
    """Gaussian responses, 20 groups × 10 = 200 observations.

    y = 5 + 2·x + b_group + ε, b ~ N(0, 3²), ε ~ N(0, 1).
    """
    n_groups, per_group = 20, 10
    n = n_groups * per_group
    group = np.repeat(np.arange(n_groups), per_group)
    x = rng.normal(0, 1, size=n)
    b = rng.normal(0, 3.0, size=n_groups)
    y = 5.0 + 2.0 * x + b[group] + rng.normal(0, 1.0, size=n)
    X = np.column_stack([np.ones(n), x])
    return {'y': y, 'X': X, 'group': group, 'beta': np.array([5.0, 2.0]),
            'sigma_group': 3.0, 'sigma_resid': 1.0}
