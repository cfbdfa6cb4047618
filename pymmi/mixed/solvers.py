"""
GLMM fitting.

Public API:
    glmm() — fit a random-intercept generalized linear mixed model by
             maximum likelihood (Laplace approximation; exact profiled ML
             for the gaussian family)
"""

from __future__ import annotations

import warnings
import numpy as np
from numpy.typing import ArrayLike
from scipy.optimize import minimize
from scipy import stats

from pymmi.core.exceptions import ConvergenceError, ValidationError
from pymmi.core.result import Result
from pymmi.core.timing import Timer
from pymmi.families import Family, Link, resolve_family

from pymmi.mixed._common import GLMMParams, VarCompSummary
from pymmi.mixed._random_effects import (
    parse_groups, build_z_matrix, expand_theta, split_by_group,
)
from pymmi.mixed._pls import solve_pls
from pymmi.mixed._pirls import solve_pirls
from pymmi.mixed._deviance import profiled_deviance_ml, laplace_deviance
from pymmi.mixed.design import MixedDesign, aliased_columns
from pymmi.mixed.solution import GLMMSolution

_ON_FAILURE = ('warn', 'raise')


def glmm(
    y: ArrayLike,
    X: ArrayLike,
    groups: dict[str, ArrayLike],
    *,
    family: str | Family = 'poisson',
    link: str | Link | None = None,
    coef_names: list[str] | tuple[str, ...] | None = None,
    tol: float = 1e-8,
    max_iter: int = 200,
    pirls_max_iter: int = 25,
    on_failure: str = 'warn',
) -> GLMMSolution:
    """Fit a random-intercept generalized linear mixed model.

    The outer loop minimizes the deviance over θ (one relative
    random-intercept SD per grouping factor) with L-BFGS-B, θ ≥ 0. For
    non-gaussian families the deviance is the Laplace approximation
    evaluated by PIRLS; for the gaussian family it is the exact profiled
    ML deviance.

    Columns of X that are linear combinations of earlier columns (an
    empty factor cell, say) are dropped before fitting with a UserWarning
    and listed in ``aliased``; their coefficients are not estimated.

    Args:
        y: Response vector (n,).
        X: Fixed effects design matrix (n, p), intercept column included.
        groups: Grouping factor name → labels, one random intercept each.
            Example: {'site': site_ids}.
        family: 'poisson' (default), 'binomial', 'gaussian' or a Family.
        link: Optional link override.
        coef_names: Names of the X columns. Default '(Intercept)', 'X1', ...
        tol: Optimizer and PIRLS tolerance.
        max_iter: Maximum optimizer iterations.
        pirls_max_iter: Maximum PIRLS iterations per deviance evaluation.
        on_failure: 'warn' (default) issues a RuntimeWarning when the fit
            does not converge; 'raise' raises ConvergenceError instead.

    Returns:
        GLMMSolution.

    Raises:
        ValidationError: On invalid inputs.
        ConvergenceError: If on_failure='raise' and the fit did not converge.
            Also raised, whatever on_failure, when the fixed-effect
            cross-product breaks down numerically.
    """
    if on_failure not in _ON_FAILURE:
        raise ValidationError(f"on_failure must be one of {_ON_FAILURE}, got {on_failure!r}")

    family_obj = resolve_family(family, link)
    is_gaussian = family_obj.name == 'gaussian' and family_obj.link.name == 'identity'

    timer = Timer()
    timer.start()

    design = MixedDesign.validate(y, X, groups)

    if coef_names is None:
        coef_names = ['(Intercept)'] + [f'X{i}' for i in range(1, design.p)]
    if len(coef_names) != design.p:
        raise ValidationError(
            f"coef_names has {len(coef_names)} entries, X has {design.p} columns"
        )
    coef_names = list(coef_names)
    warn_list = []

    aliased = aliased_columns(design.X)
    dropped = tuple(coef_names[j] for j in aliased)
    if aliased:
        if len(aliased) == design.p:
            raise ValidationError("X has no estimable columns: all are zero or aliased")
        msg = (
            f"fixed-effect design matrix is rank deficient: dropping "
            f"{len(aliased)} column(s) {list(dropped)}"
        )
        warnings.warn(msg, UserWarning, stacklevel=2)
        warn_list.append(msg)
        design = design.without_columns(aliased)
        coef_names = [name for j, name in enumerate(coef_names) if j not in aliased]

    with timer.section('setup'):
        specs = parse_groups(design.groups, design.n)
        Z = build_z_matrix(specs, design.n)
        theta0 = np.ones(len(specs), dtype=np.float64)
        bounds = [(0.0, None)] * len(specs)

    with timer.section('optimization'):
        if is_gaussian:
            objective = profiled_deviance_ml
            args = (design.X, Z, design.y, specs)
        else:
            objective = laplace_deviance
            args = (design.X, Z, design.y, specs, family_obj, tol, pirls_max_iter)
        opt_result = minimize(
            objective,
            theta0,
            args=args,
            method='L-BFGS-B',
            bounds=bounds,
            options={'maxiter': max_iter, 'ftol': tol, 'gtol': tol * 10},
        )

    theta_hat = np.maximum(opt_result.x, 0.0)
    lam = expand_theta(theta_hat, specs)

    with timer.section('final_solve'):
        if is_gaussian:
            pls = solve_pls(design.X, Z, design.y, lam)
            eta = design.X @ pls.beta + Z @ pls.b
            mu = eta
            sigma_sq = pls.pwrss / design.n
            inner_converged = True
            n_inner = 0
        else:
            pirls = solve_pirls(design.X, Z, design.y, lam, family_obj,
                                tol=tol, max_iter=pirls_max_iter)
            pls, eta, mu = pirls.pls, pirls.eta, pirls.mu
            sigma_sq = 1.0
            inner_converged = pirls.converged
            n_inner = pirls.n_iter

    converged = bool(opt_result.success) and inner_converged and bool(np.isfinite(opt_result.fun))
    problems = []
    if not opt_result.success:
        problems.append(f"Optimizer did not converge: {opt_result.message}")
    if not inner_converged:
        problems.append(f"PIRLS did not converge after {n_inner} iterations")
    warn_list.extend(problems)

    if not converged:
        message = (
            f"GLMM did not converge after {opt_result.nit} iterations. "
            + "; ".join(problems)
        )
        if on_failure == 'raise':
            raise ConvergenceError(
                message, iterations=int(opt_result.nit), reason=str(opt_result.message),
            )
        warnings.warn(message, RuntimeWarning, stacklevel=2)

    with timer.section('inference'):
        vcov = sigma_sq * pls.beta_vcov()
        se = np.sqrt(np.maximum(np.diag(vcov), 0.0))
        with np.errstate(divide='ignore', invalid='ignore'):
            z_vals = pls.beta / se
        p_vals = 2.0 * stats.norm.sf(np.abs(z_vals))

    with timer.section('model_fit'):
        n_params = design.p + len(theta_hat) + family_obj.n_dispersion_params
        if is_gaussian:
            ll = -0.5 * (pls.log_det_L()
                         + design.n * (1.0 + np.log(2.0 * np.pi * pls.pwrss / design.n)))
        else:
            # Laplace: conditional loglik − ½‖u‖² − ½ log|L|²
            ll = (family_obj.log_likelihood(design.y, mu)
                  - 0.5 * float(pls.u @ pls.u)
                  - 0.5 * pls.log_det_L())
        ll = float(ll)
        aic = -2.0 * ll + 2.0 * n_params
        bic = -2.0 * ll + np.log(design.n) * n_params

        var_comps = tuple(
            VarCompSummary(
                group=spec.group_name,
                variance=float(sigma_sq * t ** 2),
                std_dev=float(np.sqrt(sigma_sq) * t),
            )
            for spec, t in zip(specs, theta_hat)
        )

    timer.stop()

    params = GLMMParams(
        coefficients=pls.beta,
        coefficient_names=tuple(coef_names),
        se=se,
        vcov=vcov,
        z_values=z_vals,
        p_values=p_vals,
        var_components=var_comps,
        residual_variance=float(sigma_sq) if is_gaussian else None,
        log_likelihood=ll,
        deviance=family_obj.deviance(design.y, mu),
        df=int(n_params),
        aic=float(aic),
        bic=float(bic),
        n_obs=design.n,
        n_groups={s.group_name: s.n_groups for s in specs},
        family=family_obj,
        converged=converged,
        n_iter=int(opt_result.nit),
        random_effects=split_by_group(pls.b, specs),
        fitted_values=mu,
        linear_predictor=eta,
        residuals=design.y - mu,
        y=design.y,
        theta=theta_hat,
        aliased=dropped,
    )

    result = Result(
        params=params,
        info={
            'method': 'ML' if is_gaussian else 'Laplace',
            'family': family_obj.name,
            'link': family_obj.link.name,
            'optimizer': 'L-BFGS-B',
            'converged': converged,
            'n_iter': int(opt_result.nit),
            'pirls_iter': n_inner,
            'deviance': float(opt_result.fun),
            'aliased': dropped,
        },
        timing=timer.result(),
        backend_name='cpu_glmm',
        warnings=tuple(warn_list),
    )

    return GLMMSolution(_result=result)
