"""
Model specification: terms, global/candidate models and design encoding.

Public API:
    Term                  — main effect or interaction
    parse_formula()       — 'y ~ a * b + (1 | site)' → response, terms, groups
    GlobalModel           — the maximal model
    CandidateModel        — a subset of the global terms
    respects_marginality()
    ModelFrame            — global model bound to validated data
    DesignMatrix
"""

from pymmi.model.terms import Term, parse_formula
from pymmi.model.specification import (
    GlobalModel,
    CandidateModel,
    respects_marginality,
    MARGINALITY_POLICIES,
)
from pymmi.model.frame import ModelFrame, DesignMatrix, INTERCEPT

__all__ = [
    "Term",
    "parse_formula",
    "GlobalModel",
    "CandidateModel",
    "respects_marginality",
    "MARGINALITY_POLICIES",
    "ModelFrame",
    "DesignMatrix",
    "INTERCEPT",
]
