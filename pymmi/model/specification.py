"""
Global and candidate model specifications.

The GlobalModel is the maximal model: response, fixed-effect terms,
random-intercept grouping factors and error family. It is immutable and
created once. Every CandidateModel is a subset of its terms; the
intercept and the random intercepts are present in all of them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from pymmi.core.exceptions import ValidationError
from pymmi.families import Family, Link, resolve_family
from pymmi.model.terms import Term, parse_formula

MARGINALITY_POLICIES = ('main', 'hierarchy', 'none')


def respects_marginality(
    terms: Iterable[Term],
    policy: str = 'main',
    available: Iterable[Term] | None = None,
) -> bool:
    """Check whether a set of terms obeys an interaction-inclusion rule.

    Policies:
        'main': every interaction's main effects are present (default).
        'hierarchy': every lower-order sub-term of an interaction that
            exists in ``available`` (normally the global model's terms) is
            present. With ``available=None`` all sub-terms are required.
        'none': no constraint.
    """
    if policy not in MARGINALITY_POLICIES:
        raise ValidationError(
            f"marginality must be one of {MARGINALITY_POLICIES}, got {policy!r}"
        )
    if policy == 'none':
        return True

    present = set(terms)
    pool = None if available is None else set(available)
    for term in present:
        if not term.is_interaction:
            continue
        required = term.margins() if policy == 'main' else term.sub_terms()
        for sub in required:
            if policy == 'hierarchy' and pool is not None and sub not in pool:
                continue
            if sub not in present:
                return False
    return True


def _format_formula(response: str, terms: Iterable[Term], groups: Iterable[str]) -> str:
    fixed = [t.name for t in terms] or ['1']
    random = [f'(1 | {g})' for g in groups]
    return f"{response} ~ " + ' + '.join(fixed + random)


@dataclass(frozen=True)
class GlobalModel:
    """The maximal model under consideration.

    Attributes:
        response: Response column name.
        terms: Fixed-effect terms in canonical order (interaction order,
            then declaration order).
        groups: Random-intercept grouping factors, at least one.
        family: Error distribution.
        link: Link for the family, or None for its canonical link. After
            construction it holds the resolved Link.
    """
    response: str
    terms: tuple[Term, ...]
    groups: tuple[str, ...]
    family: Family = field(default_factory=lambda: resolve_family('poisson'))
    link: Link | None = None

    def __post_init__(self):
        terms = []
        for t in self.terms:
            t = Term.parse(t)
            if t not in terms:
                terms.append(t)
        terms = tuple(sorted(terms, key=lambda t: t.order))
        groups = (self.groups,) if isinstance(self.groups, str) else tuple(self.groups)
        family = resolve_family(self.family, self.link)

        if not groups:
            raise ValidationError("GlobalModel: at least one grouping factor required")
        if len(set(groups)) != len(groups):
            raise ValidationError(f"GlobalModel: duplicate grouping factors {groups}")
        variables = {v for t in terms for v in t.variables}
        if self.response in variables:
            raise ValidationError(
                f"GlobalModel: response '{self.response}' also used as a predictor"
            )
        clash = variables.intersection(groups)
        if clash:
            raise ValidationError(
                f"GlobalModel: {sorted(clash)} used both as predictor and grouping factor"
            )

        object.__setattr__(self, 'terms', terms)
        object.__setattr__(self, 'groups', groups)
        object.__setattr__(self, 'family', family)
        object.__setattr__(self, 'link', family.link)

    @classmethod
    def from_formula(
        cls,
        formula: str,
        *,
        groups: Iterable[str] | str | None = None,
        family: str | Family = 'poisson',
        link: str | Link | None = None,
    ) -> 'GlobalModel':
        """Build from 'y ~ a * b + c + (1 | site)'.

        Grouping factors may be given in the formula, in ``groups``, or
        both (merged, formula first).
        """
        response, terms, formula_groups = parse_formula(formula)
        extra = () if groups is None else ((groups,) if isinstance(groups, str) else tuple(groups))
        merged = list(formula_groups)
        for g in extra:
            if g not in merged:
                merged.append(g)
        return cls(
            response=response,
            terms=terms,
            groups=tuple(merged),
            family=family,
            link=link,
        )

    @property
    def variables(self) -> tuple[str, ...]:
        """Predictor variables in order of first appearance in the terms."""
        seen: list[str] = []
        for t in self.terms:
            for v in t.variables:
                if v not in seen:
                    seen.append(v)
        return tuple(seen)

    def required_columns(self) -> tuple[str, ...]:
        return (self.response,) + self.variables + self.groups

    def term(self, name: str | Term) -> Term:
        """Look up a term of this model by name ('b:a' matches 'a:b')."""
        term = Term.parse(name)
        if term not in self.terms:
            raise ValidationError(
                f"term '{term.name}' is not in the global model. "
                f"Terms: {[t.name for t in self.terms]}"
            )
        return term

    def candidate(self, terms: Iterable[str | Term], index: int = 0) -> 'CandidateModel':
        """A candidate with the given subset of terms, in canonical order."""
        chosen = {self.term(t) for t in terms}
        return CandidateModel(
            global_model=self,
            terms=tuple(t for t in self.terms if t in chosen),
            index=index,
        )

    @property
    def formula(self) -> str:
        return _format_formula(self.response, self.terms, self.groups)

    def __str__(self) -> str:
        return f"{self.formula}  [{self.family.name}({self.family.link.name})]"


@dataclass(frozen=True)
class CandidateModel:
    """A reduced model: a subset of the global model's terms.

    Attributes:
        global_model: The model it was derived from.
        terms: Included terms, in the global model's canonical order.
        index: Position in the enumeration (stable identifier).
    """
    global_model: GlobalModel
    terms: tuple[Term, ...]
    index: int = 0

    def has(self, term: str | Term) -> bool:
        return Term.parse(term) in self.terms

    @property
    def n_terms(self) -> int:
        return len(self.terms)

    @property
    def label(self) -> str:
        """Compact identifier: included term names joined by '+', or '(Null)'."""
        return '+'.join(t.name for t in self.terms) or '(Null)'

    @property
    def formula(self) -> str:
        g = self.global_model
        return _format_formula(g.response, self.terms, g.groups)

    def __repr__(self) -> str:
        return f"CandidateModel({self.index}: {self.formula})"
