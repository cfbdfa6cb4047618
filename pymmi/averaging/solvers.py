"""
Model averaging over a top set.

Public API:
    model_avg() — Akaike-weighted coefficient averages with unconditional
                  standard errors (Burnham & Anderson 2002, eq. 4.9)
"""

from __future__ import annotations

import numpy as np
from scipy import stats

from pymmi.core.exceptions import ValidationError
from pymmi.core.result import Result
from pymmi.core.timing import Timer
from pymmi.core.validation import check_level
from pymmi.selection.solution import DredgeSolution
from pymmi.selection.topset import DEFAULT_DELTA, TopSet, select_top_set

from pymmi.averaging._common import AveragedCoefficient, AveragingParams
from pymmi.averaging.solution import AveragingSolution

DEFAULT_LEVEL = 0.95


def _unconditional_se(weights, beta, se, estimate) -> float:
    return float(np.sum(weights * np.sqrt(se ** 2 + (beta - estimate) ** 2)))


def _coefficient_order(top_set: TopSet) -> list[tuple[str, str]]:
    seen: dict[str, str] = {}
    for entry in top_set:
        fitted = entry.fitted
        for name, term in zip(fitted.coef_names, fitted.coef_terms):
            seen.setdefault(name, term)
    return list(seen.items())


def model_avg(
    top_set: TopSet | DredgeSolution,
    *,
    level: float = DEFAULT_LEVEL,
    delta: float = DEFAULT_DELTA,
) -> AveragingSolution:
    """Average coefficients across a top set of models.

    With w′ the top-set Akaike weights renormalized to sum to 1, each
    coefficient gets two averages:

        full         Σ_i w′_i β̂_i, taking β̂_i = SE_i = 0 where the
                     coefficient is absent from model i;
        conditional  the same over only the models that contain it, with
                     w′ renormalized within them.

    Both use the unconditional standard error
    Σ_i w̃_i √(SE_i² + (β̂_i − β̄)²) over the weights w̃ of that flavour,
    and a large-sample interval β̄ ± z·SE.

    Args:
        top_set: A TopSet, or a DredgeSolution (its top set at ``delta``
            is used).
        level: Confidence level for the intervals.
        delta: Δ threshold when a DredgeSolution is passed.

    Returns:
        AveragingSolution.
    """
    if isinstance(top_set, DredgeSolution):
        top_set = select_top_set(top_set.entries, delta)
    if not isinstance(top_set, TopSet):
        raise ValidationError(
            f"model_avg needs a TopSet or DredgeSolution, got {type(top_set).__name__}"
        )
    check_level(level)

    timer = Timer()
    timer.start()

    w = top_set.normalized_weights
    z = float(stats.norm.ppf(1.0 - (1.0 - level) / 2.0))

    with timer.section('coefficients'):
        averaged = []
        for name, term in _coefficient_order(top_set):
            estimates = [entry.fitted.estimate(name) for entry in top_set]
            present = np.array([e is not None for e in estimates])
            beta = np.array([e[0] if e is not None else 0.0 for e in estimates])
            se = np.array([e[1] if e is not None else 0.0 for e in estimates])

            full = float(np.sum(w * beta))
            se_full = _unconditional_se(w, beta, se, full)

            if present.all():
                w_cond = w
            else:
                w_cond = w[present] / w[present].sum()
            beta_c, se_c = beta[present], se[present]
            conditional = float(np.sum(w_cond * beta_c))
            se_conditional = _unconditional_se(w_cond, beta_c, se_c, conditional)

            averaged.append(AveragedCoefficient(
                name=name,
                term=term,
                full=full,
                conditional=conditional,
                se_full=se_full,
                se_conditional=se_conditional,
                ci_full=(full - z * se_full, full + z * se_full),
                ci_conditional=(conditional - z * se_conditional,
                                conditional + z * se_conditional),
                importance=float(w[present].sum()),
                n_models=int(present.sum()),
            ))

    with timer.section('importance'):
        importance = {}
        for term in top_set.global_model.terms:
            has = np.array([entry.candidate.has(term) for entry in top_set])
            if has.any():
                importance[term.name] = float(w[has].sum())
        importance = dict(sorted(importance.items(), key=lambda kv: -kv[1]))

    timer.stop()

    params = AveragingParams(
        top_set=top_set,
        coefficients=tuple(averaged),
        importance=importance,
        weights=w,
        level=float(level),
    )
    result = Result(
        params=params,
        info={
            'method': 'akaike_weights',
            'n_models': len(top_set),
            'rule': top_set.rule,
            'threshold': top_set.threshold,
            'level': float(level),
            'z': z,
        },
        timing=timer.result(),
        backend_name='model_avg',
        warnings=top_set.warnings,
    )
    return AveragingSolution(_result=result)
