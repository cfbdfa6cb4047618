"""
Fixtures for selection tests: a fitter with canned log-likelihoods.

The site model (count ~ treatment * landuse + (1 | site)) has five
candidates under the default marginality rule, in enumeration order:

    0 (Null)   1 treatment   2 landuse   3 treatment+landuse
    4 treatment+landuse+landuse:treatment

With df = number of coefficients + 1 the AIC values are
324, 306, 322, 305 and 306.6.
"""

import time

import numpy as np
import pytest

from pymmi.core.exceptions import ConvergenceError
from pymmi.fitting import FittedModel
from pymmi.model.frame import ModelFrame

SITE_LOGLIK = {
    '(Null)': -160.0,
    'treatment': -150.0,
    'landuse': -158.0,
    'treatment+landuse': -148.5,
    'treatment+landuse+landuse:treatment': -148.3,
}


class FakeFitter:
    """Returns canned fits; raises ConvergenceError for labels in ``fail``."""

    def __init__(self, log_likelihoods=None, fail=(), delay=0.0, on_fit=None):
        self.log_likelihoods = dict(SITE_LOGLIK if log_likelihoods is None else log_likelihoods)
        self.fail = set(fail)
        self.delay = delay
        self.on_fit = on_fit
        self.calls = []

    def fit(self, candidate, frame):
        if self.delay:
            time.sleep(self.delay)
        self.calls.append(candidate.index)
        if self.on_fit is not None:
            self.on_fit(candidate)
        if candidate.label in self.fail:
            raise ConvergenceError(f"{candidate.label} diverged", reason='fake divergence')

        dm = frame.design_matrix(candidate.terms)
        p = len(dm.coef_names)
        return FittedModel(
            candidate=candidate,
            coef_names=dm.coef_names,
            coef_terms=dm.coef_terms,
            coefficients=np.linspace(1.0, 0.5, p),
            se=np.full(p, 0.1),
            log_likelihood=self.log_likelihoods.get(candidate.label, -200.0),
            df=p + 1,
            nobs=frame.n,
            frame=frame,
        )

    def __repr__(self):
        return 'FakeFitter()'


@pytest.fixture
def make_fitter():
    """The FakeFitter class, for tests that need non-default canned fits."""
    return FakeFitter


@pytest.fixture
def fake_fitter():
    return FakeFitter()


@pytest.fixture
def site_frame(site_model, site_data):
    return ModelFrame.build(site_model, site_data)
