"""
Common data types for the GLMM fitter.

Frozen parameter payloads that go inside Result[P] envelopes. Each
payload is a pure data container: no computation.
"""

from dataclasses import dataclass

from numpy.typing import NDArray

from pymmi.families import Family


@dataclass(frozen=True)
class VarCompSummary:
    """Variance of one random intercept.

    Attributes:
        group: Grouping factor name (e.g. 'site').
        variance: Estimated random-intercept variance σ²_b.
        std_dev: Its square root.
    """
    group: str
    variance: float
    std_dev: float


@dataclass(frozen=True)
class GLMMParams:
    """
    Parameter payload for a fitted random-intercept GLMM (or ML LMM).
    """
    # Fixed effects
    coefficients: NDArray              # β̂ (p,)
    coefficient_names: tuple[str, ...]
    se: NDArray                        # (p,)
    vcov: NDArray                      # Var(β̂) (p, p)
    z_values: NDArray                  # Wald statistics β̂ / se
    p_values: NDArray                  # two-sided, standard normal

    # Random effects
    var_components: tuple[VarCompSummary, ...]
    residual_variance: float | None    # σ² for gaussian, None otherwise

    # Model fit
    log_likelihood: float
    deviance: float
    df: int                            # number of estimated parameters
    aic: float
    bic: float
    n_obs: int
    n_groups: dict[str, int]

    # Family
    family: Family

    # Convergence
    converged: bool
    n_iter: int

    # Conditional modes: group -> {level: b̂}
    random_effects: dict[str, dict]

    # Predictions
    fitted_values: NDArray             # μ̂ (n,)
    linear_predictor: NDArray          # η̂ (n,)
    residuals: NDArray                 # y − μ̂ (n,)
    y: NDArray

    # Internal
    theta: NDArray

    # Columns of X dropped as aliased, in X order
    aliased: tuple[str, ...] = ()
