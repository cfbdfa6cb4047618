"""
Terms and formula parsing.

A Term is a main effect (one variable) or an interaction (two or more
variables). Its variables are kept sorted, so 'b:a' and 'a:b' are the same
term and are always printed as 'a:b'.

Formulas use the usual R notation for the fixed part plus random
intercepts:

    count ~ treatment * landuse + elevation + (1 | site)

``*`` expands to all main effects and interactions of its operands,
``:`` builds a single interaction, ``+`` separates terms and ``1`` (the
intercept) is always implied.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import combinations
import re

from pymmi.core.exceptions import ValidationError

_NAME = re.compile(r'^[A-Za-z_.][A-Za-z0-9_.]*$')
_RANDOM_INTERCEPT = re.compile(r'\(\s*1\s*\|\s*([^()|]+?)\s*\)')


def _check_name(name: str, context: str) -> str:
    name = name.strip()
    if not _NAME.match(name):
        raise ValidationError(f"{context}: invalid variable name {name!r}")
    return name


@dataclass(frozen=True)
class Term:
    """A main effect or interaction, identified by its sorted variables."""
    variables: tuple[str, ...]

    def __post_init__(self):
        if isinstance(self.variables, str):
            raise TypeError("Term expects a tuple of variable names; use Term.parse()")
        variables = tuple(sorted(set(self.variables)))
        if not variables:
            raise ValidationError("Term: at least one variable required")
        for v in variables:
            _check_name(v, "Term")
        object.__setattr__(self, 'variables', variables)

    @classmethod
    def parse(cls, text: 'str | Term') -> 'Term':
        """Term.parse('landuse:treatment')."""
        if isinstance(text, Term):
            return text
        parts = [p for p in text.split(':')]
        if any(not p.strip() for p in parts):
            raise ValidationError(f"Term: cannot parse {text!r}")
        return cls(tuple(_check_name(p, "Term") for p in parts))

    @property
    def name(self) -> str:
        return ':'.join(self.variables)

    @property
    def order(self) -> int:
        """1 for a main effect, 2 for a two-way interaction, ..."""
        return len(self.variables)

    @property
    def is_interaction(self) -> bool:
        return self.order > 1

    def margins(self) -> tuple['Term', ...]:
        """The main effects this term is built from."""
        return tuple(Term((v,)) for v in self.variables)

    def sub_terms(self) -> tuple['Term', ...]:
        """Every lower-order term contained in this one."""
        return tuple(
            Term(combo)
            for r in range(1, self.order)
            for combo in combinations(self.variables, r)
        )

    def __str__(self) -> str:
        return self.name


def parse_formula(formula: str) -> tuple[str, tuple[Term, ...], tuple[str, ...]]:
    """Split a model formula into response, fixed terms and grouping factors.

    Terms come back in canonical order: by interaction order, then by
    first appearance. Duplicates are dropped.

    Returns:
        (response, terms, groups)

    Raises:
        ValidationError: On syntax the parser does not support.
    """
    if formula.count('~') != 1:
        raise ValidationError(f"formula must contain exactly one '~': {formula!r}")
    lhs, rhs = formula.split('~')
    response = _check_name(lhs, "formula response")

    groups = tuple(_check_name(g, "formula grouping factor")
                   for g in _RANDOM_INTERCEPT.findall(rhs))
    rhs = _RANDOM_INTERCEPT.sub('', rhs)
    if '(' in rhs or '|' in rhs:
        raise ValidationError(
            f"only random intercepts of the form (1 | group) are supported: {formula!r}"
        )
    if '-' in rhs:
        raise ValidationError(f"term removal with '-' is not supported: {formula!r}")

    found: list[Term] = []
    for chunk in rhs.split('+'):
        chunk = chunk.strip()
        if not chunk or chunk == '1':
            continue
        if chunk == '0':
            raise ValidationError("models without an intercept are not supported")
        factors = [Term.parse(f.strip()) for f in chunk.split('*')]
        for r in range(1, len(factors) + 1):
            for combo in combinations(factors, r):
                found.append(Term(tuple(v for t in combo for v in t.variables)))

    unique: list[Term] = []
    for term in found:
        if term not in unique:
            unique.append(term)
    ordered = sorted(unique, key=lambda t: t.order)  # stable

    return response, tuple(ordered), groups
