"""
Generic result container for all PyMMI computations.

Every solver (a single GLMM fit, a dredge run, a model average) returns a
solution object that wraps one of these envelopes. The envelope carries
the domain payload together with method metadata, timing, non-fatal
warnings and version provenance.

Design decisions:
    - Generic over parameter payload P for type safety
    - info dict for flexible metadata (criterion, convergence, counts)
    - timing is optional (don't burden unit tests)
    - provenance for reproducibility (package versions)
    - Immutable (frozen=True) for reproducibility
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Any

P = TypeVar('P')  # Parameter payload type


def _default_provenance() -> dict[str, Any]:
    """Generate minimal provenance metadata."""
    import numpy as np
    import scipy
    import pymmi

    return {
        'pymmi_version': pymmi.__version__,
        'numpy_version': np.__version__,
        'scipy_version': scipy.__version__,
    }


@dataclass(frozen=True)
class Result(Generic[P]):
    """
    Immutable result envelope for statistical computations.

    Type Parameters:
        P: The domain-specific parameter payload type

    Attributes:
        params: Domain-specific parameters (coefficients, ranked models, ...)
        info: Structured metadata (method, criterion, convergence)
        timing: Execution timing breakdown, or None if not measured
        backend_name: Identifier of the code path that produced this result
        warnings: Non-fatal issues encountered during computation
        provenance: Package versions used to produce the result

    Examples:
        >>> Result(
        ...     params=SelectionParams(...),
        ...     info={'criterion': 'AICc', 'n_candidates': 5},
        ...     timing={'total_seconds': 0.8, 'fitting': 0.7},
        ...     backend_name='dredge_sequential',
        ... )
    """
    params: P
    info: dict[str, Any]
    timing: dict[str, float] | None
    backend_name: str
    warnings: tuple[str, ...] = field(default_factory=tuple)
    provenance: dict[str, Any] = field(default_factory=_default_provenance)

    def has_warning(self, substring: str) -> bool:
        """Check if any warning contains the given substring."""
        return any(substring in w for w in self.warnings)
