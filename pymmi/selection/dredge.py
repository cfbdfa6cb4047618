"""
Sub-model enumeration and ranking ("dredge").

Public API:
    enumerate_candidates() — every valid subset of the global model's terms
    dredge()               — fit, score and rank all of them

Candidates are enumerated in bitmask order over the global model's
canonical term order, so the enumeration index of a given subset never
depends on anything but the global model and the enumeration options.
Fitting may run in a thread pool; results are merged by candidate index,
so ranks and ties come out the same whatever the completion order.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from math import comb
from typing import Iterable, Iterator
import heapq
import threading
import warnings

from pymmi.core.datasource import DataSource
from pymmi.core.exceptions import (
    ConvergenceError, EmptySelectionError, FittingCancelled,
    TooManyCandidatesError, ValidationError,
)
from pymmi.core.result import Result
from pymmi.core.timing import Timer
from pymmi.core.validation import check_positive_int
from pymmi.fitting import FittedModel, GLMMFitter, ModelFitter
from pymmi.model.frame import ModelFrame
from pymmi.model.specification import (
    MARGINALITY_POLICIES, CandidateModel, GlobalModel, respects_marginality,
)
from pymmi.model.terms import Term
from pymmi.selection._common import (
    FailedCandidate, RankedEntry, SelectionParams, akaike_weights,
)
from pymmi.selection.criteria import normalize_criterion, rank_order, resolve_nobs, score
from pymmi.selection.solution import DredgeSolution

DEFAULT_MAX_CANDIDATES = 4096

_CANCELLED = object()


def _masks_by_size(n: int, size: int) -> Iterator[int]:
    # n-bit masks with exactly ``size`` bits set, ascending (Gosper's hack)
    if size == 0:
        yield 0
        return
    mask, end = (1 << size) - 1, 1 << n
    while mask < end:
        yield mask
        low = mask & -mask
        ripple = mask + low
        mask = (((ripple ^ mask) >> 2) // low) | ripple


def _admissible_masks(n: int, sizes: range) -> Iterator[int]:
    """Masks whose popcount lies in ``sizes``, in ascending numeric order."""
    return heapq.merge(*(_masks_by_size(n, k) for k in sizes))


def enumerate_candidates(
    global_model: GlobalModel,
    *,
    fixed: Iterable[str | Term] = (),
    marginality: str = 'main',
    min_terms: int = 0,
    max_terms: int | None = None,
    max_candidates: int = DEFAULT_MAX_CANDIDATES,
) -> tuple[CandidateModel, ...]:
    """List the candidate models of ``global_model``.

    Only masks whose size satisfies ``min_terms``/``max_terms`` are
    visited, still in ascending bitmask order, so a tight ``max_terms``
    keeps enumeration cheap however many terms the global model has.

    Args:
        global_model: The maximal model.
        fixed: Terms included in every candidate.
        marginality: 'main', 'hierarchy' or 'none'; see
            respects_marginality().
        min_terms: Minimum number of terms in a candidate (fixed included).
        max_terms: Maximum number of terms in a candidate, or None.
        max_candidates: Ceiling on the number of candidates.

    Returns:
        Candidates in enumeration order; ``index`` is the position.

    Raises:
        TooManyCandidatesError: More than ``max_candidates`` valid subsets.
            Raised as soon as the ceiling is crossed, before anything is
            fitted. Without interaction constraints the count is exact and
            known up front, so nothing is walked.
    """
    if marginality not in MARGINALITY_POLICIES:
        raise ValidationError(
            f"marginality must be one of {MARGINALITY_POLICIES}, got {marginality!r}"
        )
    check_positive_int(max_candidates, 'max_candidates')
    if min_terms < 0:
        raise ValidationError(f"min_terms must be >= 0, got {min_terms}")
    if max_terms is not None and max_terms < min_terms:
        raise ValidationError(f"max_terms ({max_terms}) < min_terms ({min_terms})")

    if isinstance(fixed, (str, Term)):
        fixed = (fixed,)
    fixed_terms = {global_model.term(t) for t in fixed}
    free = [t for t in global_model.terms if t not in fixed_terms]

    # subset sizes allowed by min_terms/max_terms, counted over free terms
    upper = len(free) if max_terms is None else min(len(free), max_terms - len(fixed_terms))
    sizes = range(max(0, min_terms - len(fixed_terms)), upper + 1)

    unconstrained = marginality == 'none' or not any(
        t.is_interaction for t in global_model.terms
    )
    if unconstrained:
        total = sum(comb(len(free), k) for k in sizes)
        if total > max_candidates:
            raise TooManyCandidatesError(
                f"{total} candidate models from {len(free)} free terms exceed the limit "
                f"of {max_candidates}; fix some terms, restrict max_terms or raise max_candidates",
                n_terms=len(free),
                limit=max_candidates,
                n_candidates=total,
            )

    candidates: list[CandidateModel] = []
    for mask in _admissible_masks(len(free), sizes):
        chosen = fixed_terms | {t for i, t in enumerate(free) if mask >> i & 1}
        terms = tuple(t for t in global_model.terms if t in chosen)
        if not respects_marginality(terms, marginality, available=global_model.terms):
            continue
        if len(candidates) == max_candidates:
            raise TooManyCandidatesError(
                f"more than {max_candidates} candidate models from {len(free)} free terms; "
                f"fix some terms, restrict max_terms or raise max_candidates",
                n_terms=len(free),
                limit=max_candidates,
                n_candidates=len(candidates) + 1,
            )
        candidates.append(CandidateModel(global_model, terms, index=len(candidates)))

    return tuple(candidates)


def _fit_one(
    fitter: ModelFitter,
    candidate: CandidateModel,
    frame: ModelFrame,
    cancel: threading.Event | None,
):
    if cancel is not None and cancel.is_set():
        return _CANCELLED
    try:
        return fitter.fit(candidate, frame)
    except ConvergenceError as e:
        if e.candidate_index is None:
            e.candidate_index = candidate.index
        return FailedCandidate(candidate, e)


def _cancelled(outcomes: list) -> FittingCancelled:
    done = sum(1 for o in outcomes if o is not None)
    return FittingCancelled(f"fitting cancelled after {done} candidate(s)", n_completed=done)


def _fit_all(
    candidates: tuple[CandidateModel, ...],
    frame: ModelFrame,
    fitter: ModelFitter,
    n_workers: int,
    cancel: threading.Event | None,
) -> list:
    outcomes: list = [None] * len(candidates)

    if n_workers == 1:
        for i, candidate in enumerate(candidates):
            outcome = _fit_one(fitter, candidate, frame, cancel)
            if outcome is _CANCELLED:
                raise _cancelled(outcomes)
            outcomes[i] = outcome
        return outcomes

    pool = ThreadPoolExecutor(max_workers=n_workers, thread_name_prefix='pymmi-fit')
    try:
        futures = {
            pool.submit(_fit_one, fitter, candidate, frame, cancel): i
            for i, candidate in enumerate(candidates)
        }
        for future in as_completed(futures):
            outcome = future.result()
            if outcome is _CANCELLED or (cancel is not None and cancel.is_set()):
                raise _cancelled(outcomes)
            outcomes[futures[future]] = outcome
    finally:
        pool.shutdown(wait=True, cancel_futures=True)
    return outcomes


def dredge(
    global_model: GlobalModel,
    data: DataSource,
    *,
    nobs: int | str | None = None,
    criterion: str = 'AICc',
    fitter: ModelFitter | None = None,
    n_workers: int = 1,
    cancel: threading.Event | None = None,
    fixed: Iterable[str | Term] = (),
    marginality: str = 'main',
    min_terms: int = 0,
    max_terms: int | None = None,
    max_candidates: int = DEFAULT_MAX_CANDIDATES,
) -> DredgeSolution:
    """Fit every candidate sub-model and rank them by an information criterion.

    Args:
        global_model: The maximal model.
        data: Observations; a DataSource or a pandas DataFrame.
        nobs: Effective sample size for AICc/BIC: an int, 'observations',
            or a grouping factor name (its number of levels). Required
            unless criterion='AIC'.
        criterion: 'AIC', 'AICc' (default) or 'BIC', case-insensitive.
        fitter: Model fitter. Default GLMMFitter().
        n_workers: Number of fitting threads. 1 fits sequentially.
        cancel: Event checked before each fit; once set, pending fits are
            dropped and FittingCancelled is raised.
        fixed, marginality, min_terms, max_terms, max_candidates:
            Passed to enumerate_candidates().

    Returns:
        DredgeSolution. Candidates that failed to converge are listed in
        ``failed`` and excluded from ranking.

    Raises:
        MissingDataError: A required column is absent or has nulls.
        TooManyCandidatesError: Enumeration ceiling exceeded.
        InsufficientSampleSizeError: Criterion undefined for some model.
        EmptySelectionError: No candidate converged.
        FittingCancelled: ``cancel`` was set.
    """
    kind = normalize_criterion(criterion)
    check_positive_int(n_workers, 'n_workers')
    if fitter is None:
        fitter = GLMMFitter()
    if not isinstance(fitter, ModelFitter):
        raise ValidationError(f"fitter must provide fit(candidate, frame), got {fitter!r}")
    if not isinstance(data, DataSource):
        data = DataSource.from_dataframe(data)
    if isinstance(fixed, (str, Term)):
        fixed = (fixed,)
    fixed = tuple(global_model.term(t) for t in fixed)

    timer = Timer()
    timer.start()

    with timer.section('validation'):
        frame = ModelFrame.build(global_model, data)
        n_eff = None if nobs is None else resolve_nobs(nobs, frame)
        if n_eff is None and kind != 'AIC':
            raise ValidationError(
                f"{kind} needs the effective sample size: pass nobs as an int, "
                f"'observations' or a grouping factor name {list(global_model.groups)}"
            )

    with timer.section('enumeration'):
        candidates = enumerate_candidates(
            global_model,
            fixed=fixed,
            marginality=marginality,
            min_terms=min_terms,
            max_terms=max_terms,
            max_candidates=max_candidates,
        )

    with timer.section('fitting'):
        outcomes = _fit_all(candidates, frame, fitter, n_workers, cancel)

    fits: list[FittedModel] = [o for o in outcomes if not isinstance(o, FailedCandidate)]
    failed = tuple(o for o in outcomes if isinstance(o, FailedCandidate))

    warn_list = []
    if failed:
        msg = (
            f"{len(failed)} of {len(candidates)} candidate model(s) failed to converge "
            f"and were excluded from ranking: indices {[f.candidate.index for f in failed]}"
        )
        warnings.warn(msg, RuntimeWarning, stacklevel=2)
        warn_list.append(msg)

    if not fits:
        raise EmptySelectionError(
            f"all {len(candidates)} candidate model(s) failed to converge",
            threshold=float('inf'),
            n_ranked=0,
        )

    with timer.section('ranking'):
        values = [score(f, n_eff, kind) for f in fits]
        delta, weights = akaike_weights(values)
        entries = tuple(
            RankedEntry(
                fitted=fits[i],
                criterion_value=values[i],
                delta=float(delta[i]),
                weight=float(weights[i]),
                rank=r + 1,
            )
            for r, i in enumerate(rank_order(values))
        )

    timer.stop()

    params = SelectionParams(
        global_model=global_model,
        entries=entries,
        failed=failed,
        criterion=kind,
        nobs=n_eff,
        terms=global_model.terms,
    )
    result = Result(
        params=params,
        info={
            'criterion': kind,
            'nobs': n_eff,
            'n_candidates': len(candidates),
            'n_converged': len(fits),
            'n_failed': len(failed),
            'marginality': marginality,
            'fixed': tuple(t.name for t in fixed),
            'n_workers': n_workers,
            'fitter': repr(fitter),
        },
        timing=timer.result(),
        backend_name='dredge_sequential' if n_workers == 1 else 'dredge_threads',
        warnings=tuple(warn_list),
    )
    return DredgeSolution(_result=result)
