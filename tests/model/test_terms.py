"""
Tests for Term and parse_formula.
"""

import pytest

from pymmi.core.exceptions import ValidationError
from pymmi.model.terms import Term, parse_formula


class TestTerm:

    def test_variables_sorted(self):
        assert Term(('treatment', 'landuse')).variables == ('landuse', 'treatment')

    def test_parse_is_order_insensitive(self):
        assert Term.parse('b:a') == Term(('a', 'b'))
        assert Term.parse('b:a').name == 'a:b'

    def test_parse_passes_terms_through(self):
        t = Term(('x',))
        assert Term.parse(t) is t

    def test_order_and_interaction(self):
        assert Term.parse('x').order == 1
        assert not Term.parse('x').is_interaction
        assert Term.parse('a:b:c').order == 3
        assert Term.parse('a:b:c').is_interaction

    def test_margins(self):
        assert Term.parse('b:a').margins() == (Term(('a',)), Term(('b',)))

    def test_sub_terms(self):
        subs = set(Term.parse('a:b:c').sub_terms())
        expected = {Term.parse(s) for s in ('a', 'b', 'c', 'a:b', 'a:c', 'b:c')}
        assert subs == expected

    def test_string_rejected(self):
        with pytest.raises(TypeError):
            Term('ab')

    @pytest.mark.parametrize("text", ['a::b', ':a', '1x', 'a b'])
    def test_invalid_names(self, text):
        with pytest.raises(ValidationError):
            Term.parse(text)


class TestParseFormula:

    def test_star_expands(self):
        response, terms, groups = parse_formula('count ~ treatment * landuse')
        assert response == 'count'
        assert [t.name for t in terms] == ['treatment', 'landuse', 'landuse:treatment']
        assert groups == ()

    def test_three_way_star(self):
        _, terms, _ = parse_formula('y ~ a * b * c')
        assert [t.name for t in terms] == ['a', 'b', 'c', 'a:b', 'a:c', 'b:c', 'a:b:c']

    def test_random_intercepts(self):
        _, terms, groups = parse_formula('count ~ elevation + (1 | site) + (1|year)')
        assert [t.name for t in terms] == ['elevation']
        assert groups == ('site', 'year')

    def test_duplicates_removed_first_wins(self):
        _, terms, _ = parse_formula('y ~ b + a + b:a + a:b + b')
        assert [t.name for t in terms] == ['b', 'a', 'a:b']

    def test_canonical_order_by_interaction_order(self):
        _, terms, _ = parse_formula('y ~ a:b + c + a + b')
        assert [t.name for t in terms] == ['c', 'a', 'b', 'a:b']

    def test_explicit_intercept_ignored(self):
        _, terms, _ = parse_formula('y ~ 1 + x')
        assert [t.name for t in terms] == ['x']

    def test_null_model(self):
        _, terms, groups = parse_formula('y ~ 1 + (1 | site)')
        assert terms == ()
        assert groups == ('site',)

    @pytest.mark.parametrize("formula", [
        'y x',
        'y ~ a ~ b',
        'y ~ a - b',
        'y ~ 0 + a',
        'y ~ a + (x | site)',
        'y ~ a + (1 + x | site)',
    ])
    def test_unsupported(self, formula):
        with pytest.raises(ValidationError):
            parse_formula(formula)
