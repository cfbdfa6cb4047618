"""
Hand-built top sets with known averages.

Two models of the site data, with top-set weights 0.3 and 0.2
(renormalized 0.6 / 0.4):

    A  treatment+landuse   (Intercept) 1.0 ± 0.1, treatmentmulch 0.5 ± 0.2,
                           landusepasture 0.4 ± 0.3
    B  treatment           (Intercept) 1.2 ± 0.1, treatmentmulch 0.6 ± 0.2
"""

import pytest

from pymmi.fitting import FittedModel
from pymmi.model.frame import ModelFrame
from pymmi.selection import RankedEntry, TopSet


@pytest.fixture
def site_frame(site_model, site_data):
    return ModelFrame.build(site_model, site_data)


def make_entry(site_model, frame, terms, coefs, se, criterion_value, weight, rank):
    candidate = site_model.candidate(terms)
    dm = frame.design_matrix(candidate.terms)
    fitted = FittedModel(
        candidate=candidate,
        coef_names=dm.coef_names,
        coef_terms=dm.coef_terms,
        coefficients=coefs,
        se=se,
        log_likelihood=-criterion_value / 2.0,
        df=len(coefs) + 1,
        nobs=frame.n,
        frame=frame,
    )
    return RankedEntry(
        fitted=fitted,
        criterion_value=criterion_value,
        delta=criterion_value - 100.0,
        weight=weight,
        rank=rank,
    )


@pytest.fixture
def model_a(site_model, site_frame):
    return make_entry(site_model, site_frame, ['treatment', 'landuse'],
                      [1.0, 0.5, 0.4], [0.1, 0.2, 0.3], 100.0, 0.3, 1)


@pytest.fixture
def model_b(site_model, site_frame):
    return make_entry(site_model, site_frame, ['treatment'],
                      [1.2, 0.6], [0.1, 0.2], 100.8, 0.2, 2)


@pytest.fixture
def two_models(model_a, model_b):
    return TopSet(entries=(model_a, model_b), rule='delta', threshold=2.0, n_ranked=5)


@pytest.fixture
def one_model(model_a):
    return TopSet(entries=(model_a,), rule='delta', threshold=0.0, n_ranked=5)
