"""Tests for families and links."""

import numpy as np
import pytest
from scipy import stats

from pymmi.families import (
    Binomial, Gaussian, Poisson, resolve_family, resolve_link,
    IdentityLink, LogLink,
)


class TestLinks:

    @pytest.mark.parametrize("name", ['identity', 'log', 'logit', 'probit', 'inverse'])
    def test_round_trip(self, name):
        link = resolve_link(name, IdentityLink())
        mu = np.array([0.2, 0.5, 0.7])
        np.testing.assert_allclose(link.linkinv(link.link(mu)), mu, rtol=1e-10)

    @pytest.mark.parametrize("name", ['log', 'logit', 'probit'])
    def test_mu_eta_is_derivative(self, name):
        link = resolve_link(name, IdentityLink())
        eta = np.array([-1.0, 0.0, 0.8])
        h = 1e-6
        numeric = (link.linkinv(eta + h) - link.linkinv(eta - h)) / (2 * h)
        np.testing.assert_allclose(link.mu_eta(eta), numeric, rtol=1e-6)

    def test_unknown_link(self):
        with pytest.raises(ValueError, match="Unknown link"):
            resolve_link('cloglog', IdentityLink())


class TestFamilies:

    def test_resolve(self):
        assert isinstance(resolve_family('poisson'), Poisson)
        assert isinstance(resolve_family('Normal'), Gaussian)
        assert isinstance(resolve_family('binomial').link, type(resolve_link('logit', LogLink())))

    def test_resolve_with_link_override(self):
        fam = resolve_family(Poisson(), 'identity')
        assert fam.link.name == 'identity'

    def test_equality(self):
        assert Poisson() == resolve_family('poisson')
        assert Binomial() != Binomial('probit')
        assert hash(Poisson()) == hash(Poisson())

    def test_unknown_family(self):
        with pytest.raises(ValueError, match="Unknown family"):
            resolve_family('negbin')

    def test_dispersion_params(self):
        assert Gaussian.n_dispersion_params == 1
        assert Poisson.n_dispersion_params == 0

    def test_poisson_log_likelihood(self):
        y = np.array([0.0, 2.0, 5.0])
        mu = np.array([0.5, 2.5, 4.0])
        assert Poisson().log_likelihood(y, mu) == pytest.approx(stats.poisson.logpmf(y, mu).sum())

    def test_binomial_log_likelihood(self):
        y = np.array([0.0, 1.0, 1.0])
        mu = np.array([0.2, 0.6, 0.9])
        assert Binomial().log_likelihood(y, mu) == pytest.approx(stats.bernoulli.logpmf(y, mu).sum())

    def test_gaussian_log_likelihood(self):
        y = np.array([1.0, 2.0, 4.0])
        mu = np.array([1.5, 2.0, 3.0])
        expected = stats.norm.logpdf(y, mu, np.sqrt(2.0)).sum()
        assert Gaussian().log_likelihood(y, mu, dispersion=2.0) == pytest.approx(expected)

    def test_poisson_deviance_zero_at_saturation(self):
        y = np.array([0.0, 3.0, 7.0])
        assert Poisson().deviance(y, np.maximum(y, 1e-10)) == pytest.approx(0.0, abs=1e-8)

    def test_sample_shapes(self, rng):
        mu = np.full(50, 3.0)
        assert Poisson().sample(rng, mu).shape == (50,)
        draws = Binomial().sample(rng, np.full(50, 0.5))
        assert set(np.unique(draws)) <= {0.0, 1.0}
