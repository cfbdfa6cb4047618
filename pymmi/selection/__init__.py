"""
Model selection: enumerate, fit, rank, and pick a top set.

Public API:
    dredge()                — fit and rank every sub-model of a global model
    enumerate_candidates()  — the candidate list alone
    DredgeSolution          — ranked model table
    RankedEntry, FailedCandidate
    select_top_set()        — Δ ≤ threshold
    select_confidence_set() — cumulative weight ≥ level
    TopSet
    aic(), aicc(), bic(), score(), akaike_weights()
"""

from pymmi.selection.criteria import (
    CRITERIA, aic, aicc, bic, score, resolve_nobs, rank_order, normalize_criterion,
)
from pymmi.selection._common import (
    RankedEntry, FailedCandidate, SelectionParams, akaike_weights,
)
from pymmi.selection.topset import (
    DEFAULT_DELTA, TopSet, select_top_set, select_confidence_set,
)
from pymmi.selection.solution import DredgeSolution
from pymmi.selection.dredge import DEFAULT_MAX_CANDIDATES, dredge, enumerate_candidates

__all__ = [
    "dredge",
    "enumerate_candidates",
    "DredgeSolution",
    "RankedEntry",
    "FailedCandidate",
    "SelectionParams",
    "select_top_set",
    "select_confidence_set",
    "TopSet",
    "aic",
    "aicc",
    "bic",
    "score",
    "resolve_nobs",
    "rank_order",
    "normalize_criterion",
    "akaike_weights",
    "CRITERIA",
    "DEFAULT_DELTA",
    "DEFAULT_MAX_CANDIDATES",
]
