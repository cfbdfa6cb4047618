"""
Tolerance tiers for numerical validation.

Used by the test suite when comparing model-averaged quantities:
closed-form identities (weights summing to one, full == conditional for
universal terms) are held to machine precision, while quantities that go
through the GLMM optimizer are compared at optimizer precision.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ToleranceTier:
    """Tolerance specification for numerical comparison."""
    rtol: float
    atol: float
    name: str
    description: str


# Pure arithmetic on already-computed numbers
EXACT = ToleranceTier(
    rtol=1e-12,
    atol=1e-9,
    name='exact',
    description='closed-form identities of Akaike weighting',
)

# Anything that passes through L-BFGS-B / PIRLS
OPTIMIZER = ToleranceTier(
    rtol=1e-4,
    atol=1e-6,
    name='optimizer',
    description='quantities estimated by the GLMM optimizer',
)
