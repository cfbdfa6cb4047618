"""
pytest configuration and shared fixtures.
"""

import pytest
import numpy as np

from pymmi.core.datasource import DataSource
from pymmi.model.specification import GlobalModel


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(42)


def make_site_data(rng, n_sites=16, plots_per_site=6):
    """Plot-level counts nested in sites.

    Treatment varies within sites, land use and elevation between sites.
    log μ = 1.2 + 0.5·mulch + 0.4·pasture + b_site, b_site ~ N(0, 0.3²).
    """
    n = n_sites * plots_per_site
    site_idx = np.repeat(np.arange(n_sites), plots_per_site)
    site = np.array([f"S{i + 1:02d}" for i in site_idx])
    landuse = np.where(site_idx % 2 == 0, 'forest', 'pasture')
    treatment = np.tile(['control', 'mulch'], n // 2)
    elevation = rng.normal(400.0, 80.0, size=n_sites)[site_idx]

    b_site = rng.normal(0.0, 0.3, size=n_sites)
    eta = 1.2 + 0.5 * (treatment == 'mulch') + 0.4 * (landuse == 'pasture') + b_site[site_idx]
    count = rng.poisson(np.exp(eta)).astype(float)

    return DataSource.from_arrays(
        count=count,
        treatment=treatment,
        landuse=landuse,
        elevation=elevation,
        site=site,
    )


@pytest.fixture
def site_data(rng):
    return make_site_data(rng)


@pytest.fixture
def site_model():
    """count ~ treatment * landuse + (1 | site), poisson."""
    return GlobalModel.from_formula(
        'count ~ treatment * landuse + (1 | site)', family='poisson',
    )
