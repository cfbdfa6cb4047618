"""
Error distributions and link functions for the global model.

A Family bundles the variance function, deviance and log-likelihood of
the response distribution with a Link. The GLMM fitter uses them inside
PIRLS; the averager uses ``link.linkinv`` to put every candidate's
prediction on the response scale before weighting; the simulator uses
``Family.sample`` to draw teaching data.

References:
    McCullagh, P., & Nelder, J. A. (1989). Generalized Linear Models (2nd ed.)
    R Core Team. stats::family, stats::make.link
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import numpy as np
from numpy.typing import NDArray
from scipy import special, stats


# =====================================================================
# Link functions
# =====================================================================

class Link(ABC):
    """Link function g(μ) = η and its inverse."""

    name: str = ''

    @abstractmethod
    def link(self, mu: NDArray) -> NDArray:
        ...

    @abstractmethod
    def linkinv(self, eta: NDArray) -> NDArray:
        ...

    @abstractmethod
    def mu_eta(self, eta: NDArray) -> NDArray:
        """dμ/dη, used for PIRLS working weights."""
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class IdentityLink(Link):
    name = 'identity'

    def link(self, mu: NDArray) -> NDArray:
        return np.array(mu, dtype=np.float64)

    def linkinv(self, eta: NDArray) -> NDArray:
        return np.array(eta, dtype=np.float64)

    def mu_eta(self, eta: NDArray) -> NDArray:
        return np.ones_like(eta, dtype=np.float64)


class LogLink(Link):
    name = 'log'

    def link(self, mu: NDArray) -> NDArray:
        return np.log(np.maximum(mu, 1e-10))

    def linkinv(self, eta: NDArray) -> NDArray:
        return np.exp(np.clip(eta, -500, 500))

    def mu_eta(self, eta: NDArray) -> NDArray:
        return np.maximum(np.exp(np.clip(eta, -500, 500)), 1e-10)


class LogitLink(Link):
    name = 'logit'

    def link(self, mu: NDArray) -> NDArray:
        mu = np.clip(mu, 1e-10, 1 - 1e-10)
        return np.log(mu / (1 - mu))

    def linkinv(self, eta: NDArray) -> NDArray:
        return special.expit(eta)

    def mu_eta(self, eta: NDArray) -> NDArray:
        p = special.expit(eta)
        return np.maximum(p * (1.0 - p), 1e-10)


class ProbitLink(Link):
    name = 'probit'

    def link(self, mu: NDArray) -> NDArray:
        return stats.norm.ppf(np.clip(mu, 1e-10, 1 - 1e-10))

    def linkinv(self, eta: NDArray) -> NDArray:
        return stats.norm.cdf(eta)

    def mu_eta(self, eta: NDArray) -> NDArray:
        return np.maximum(stats.norm.pdf(eta), 1e-10)


class InverseLink(Link):
    name = 'inverse'

    def link(self, mu: NDArray) -> NDArray:
        return 1.0 / np.maximum(mu, 1e-10)

    def linkinv(self, eta: NDArray) -> NDArray:
        return 1.0 / np.maximum(eta, 1e-10)

    def mu_eta(self, eta: NDArray) -> NDArray:
        return -1.0 / np.maximum(eta ** 2, 1e-20)


_LINK_CLASSES: dict[str, type[Link]] = {
    'identity': IdentityLink,
    'log': LogLink,
    'logit': LogitLink,
    'probit': ProbitLink,
    'inverse': InverseLink,
}


def resolve_link(link: str | Link | None, default: Link) -> Link:
    """Resolve a link argument to a Link instance."""
    if link is None:
        return default
    if isinstance(link, Link):
        return link
    if isinstance(link, str):
        cls = _LINK_CLASSES.get(link.lower())
        if cls is None:
            valid = ', '.join(sorted(_LINK_CLASSES))
            raise ValueError(f"Unknown link: {link!r}. Valid links: {valid}")
        return cls()
    raise TypeError(f"link must be str or Link, got {type(link).__name__}")


# =====================================================================
# Families
# =====================================================================

class Family(ABC):
    """Response distribution plus link."""

    name: str = ''

    #: Extra parameters estimated beyond β and θ (residual variance).
    n_dispersion_params: int = 0

    def __init__(self, link: str | Link | None = None):
        self._link = resolve_link(link, self._default_link())

    @abstractmethod
    def _default_link(self) -> Link:
        ...

    @property
    def link(self) -> Link:
        return self._link

    @abstractmethod
    def variance(self, mu: NDArray) -> NDArray:
        """Variance function V(μ)."""
        ...

    @abstractmethod
    def deviance(self, y: NDArray, mu: NDArray) -> float:
        """Total unit deviance 2 Σ d(yᵢ, μᵢ)."""
        ...

    @abstractmethod
    def initialize(self, y: NDArray) -> NDArray:
        """Starting μ for PIRLS, inside the link's domain."""
        ...

    @abstractmethod
    def log_likelihood(self, y: NDArray, mu: NDArray, dispersion: float = 1.0) -> float:
        """Full conditional log-likelihood including normalizing constants."""
        ...

    @abstractmethod
    def sample(self, rng: np.random.Generator, mu: NDArray, scale: float = 1.0) -> NDArray:
        """Draw one response per mean."""
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(link={self._link.name!r})"

    def __eq__(self, other: object) -> bool:
        return (
            isinstance(other, Family)
            and other.name == self.name
            and other.link.name == self.link.name
        )

    def __hash__(self) -> int:
        return hash((self.name, self.link.name))


class Gaussian(Family):
    """Normal errors. V(μ) = 1."""

    name = 'gaussian'
    n_dispersion_params = 1

    def _default_link(self) -> Link:
        return IdentityLink()

    def variance(self, mu: NDArray) -> NDArray:
        return np.ones_like(mu)

    def initialize(self, y: NDArray) -> NDArray:
        return y.copy()

    def deviance(self, y: NDArray, mu: NDArray) -> float:
        return float(np.sum((y - mu) ** 2))

    def log_likelihood(self, y: NDArray, mu: NDArray, dispersion: float = 1.0) -> float:
        n = y.shape[0]
        rss = float(np.sum((y - mu) ** 2))
        return -0.5 * (rss / dispersion + n * np.log(2 * np.pi * dispersion))

    def sample(self, rng: np.random.Generator, mu: NDArray, scale: float = 1.0) -> NDArray:
        return rng.normal(mu, scale)


class Binomial(Family):
    """Bernoulli responses (0/1). V(μ) = μ(1 − μ)."""

    name = 'binomial'

    def _default_link(self) -> Link:
        return LogitLink()

    def variance(self, mu: NDArray) -> NDArray:
        mu = np.clip(mu, 1e-10, 1 - 1e-10)
        return mu * (1.0 - mu)

    def initialize(self, y: NDArray) -> NDArray:
        return (y + 0.5) / 2.0

    def deviance(self, y: NDArray, mu: NDArray) -> float:
        mu = np.clip(mu, 1e-10, 1 - 1e-10)
        # 0 * log(0) = 0; np.where evaluates both branches
        with np.errstate(divide='ignore', invalid='ignore'):
            term1 = np.where(y > 0, y * np.log(y / mu), 0.0)
            term2 = np.where(y < 1, (1 - y) * np.log((1 - y) / (1 - mu)), 0.0)
        return 2.0 * float(np.sum(term1 + term2))

    def log_likelihood(self, y: NDArray, mu: NDArray, dispersion: float = 1.0) -> float:
        mu = np.clip(mu, 1e-10, 1 - 1e-10)
        return float(np.sum(y * np.log(mu) + (1 - y) * np.log(1 - mu)))

    def sample(self, rng: np.random.Generator, mu: NDArray, scale: float = 1.0) -> NDArray:
        return rng.binomial(1, np.clip(mu, 0.0, 1.0)).astype(np.float64)


class Poisson(Family):
    """Counts. V(μ) = μ."""

    name = 'poisson'

    def _default_link(self) -> Link:
        return LogLink()

    def variance(self, mu: NDArray) -> NDArray:
        return np.maximum(mu, 1e-10)

    def initialize(self, y: NDArray) -> NDArray:
        return np.maximum(y, 0.1)

    def deviance(self, y: NDArray, mu: NDArray) -> float:
        mu = np.maximum(mu, 1e-10)
        with np.errstate(divide='ignore', invalid='ignore'):
            term = np.where(y > 0, y * np.log(y / mu), 0.0)
        return 2.0 * float(np.sum(term - (y - mu)))

    def log_likelihood(self, y: NDArray, mu: NDArray, dispersion: float = 1.0) -> float:
        mu = np.maximum(mu, 1e-10)
        return float(np.sum(y * np.log(mu) - mu - special.gammaln(y + 1)))

    def sample(self, rng: np.random.Generator, mu: NDArray, scale: float = 1.0) -> NDArray:
        return rng.poisson(mu).astype(np.float64)


_FAMILY_CLASSES: dict[str, type[Family]] = {
    'gaussian': Gaussian,
    'normal': Gaussian,
    'binomial': Binomial,
    'poisson': Poisson,
}


def resolve_family(family: str | Family, link: str | Link | None = None) -> Family:
    """Resolve a family argument (name or instance) to a Family instance.

    Raises:
        ValueError: If the name is not recognized.
        TypeError: If the argument is neither a string nor a Family.
    """
    if isinstance(family, Family):
        if link is not None:
            return type(family)(link)
        return family
    if isinstance(family, str):
        cls = _FAMILY_CLASSES.get(family.lower())
        if cls is None:
            valid = ', '.join(sorted(k for k in _FAMILY_CLASSES if k != 'normal'))
            raise ValueError(f"Unknown family: {family!r}. Valid families: {valid}")
        return cls(link)
    raise TypeError(f"family must be str or Family, got {type(family).__name__}")
