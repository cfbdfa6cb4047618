"""
Tests for the PyMMI exception hierarchy.

Validates:
    - Inheritance chain (all exceptions catchable via PyMMIError)
    - Diagnostic attributes on the selection-specific errors
    - Default attribute values (None for optional attributes)
"""

import pytest

from pymmi.core.exceptions import (
    ConvergenceError,
    DimensionError,
    EmptySelectionError,
    FittingCancelled,
    InsufficientSampleSizeError,
    MissingDataError,
    NumericalError,
    PyMMIError,
    TooManyCandidatesError,
    ValidationError,
)


# ═══════════════════════════════════════════════════════════════════════
# Inheritance hierarchy
# ═══════════════════════════════════════════════════════════════════════


class TestInheritance:
    """Every exception is catchable via PyMMIError."""

    def test_validation_error_is_pymmi_error(self):
        with pytest.raises(PyMMIError):
            raise ValidationError("bad input")

    def test_dimension_error_is_validation_error(self):
        with pytest.raises(ValidationError):
            raise DimensionError("wrong shape")

    def test_missing_data_error_is_validation_error(self):
        with pytest.raises(ValidationError):
            raise MissingDataError("column 'site' not found", column='site')

    def test_numerical_error_is_pymmi_error(self):
        with pytest.raises(PyMMIError):
            raise NumericalError("computation failed")

    def test_convergence_error_is_not_numerical_error(self):
        err = ConvergenceError("did not converge", iterations=100)
        assert isinstance(err, PyMMIError)
        assert not isinstance(err, NumericalError)

    @pytest.mark.parametrize("exc", [
        InsufficientSampleSizeError("n too small", n=3, k=4, criterion='AICc'),
        TooManyCandidatesError("too many", n_terms=20, limit=4096, n_candidates=4097),
        EmptySelectionError("empty", threshold=-1.0, n_ranked=5),
        FittingCancelled("cancelled", n_completed=2),
    ])
    def test_selection_errors_are_pymmi_errors(self, exc):
        assert isinstance(exc, PyMMIError)
        assert not isinstance(exc, ValidationError)


# ═══════════════════════════════════════════════════════════════════════
# Diagnostic attributes
# ═══════════════════════════════════════════════════════════════════════


class TestMissingDataError:

    def test_attributes(self):
        err = MissingDataError("column 'count' has 3 missing value(s)", column='count', n_missing=3)
        assert err.column == 'count'
        assert err.n_missing == 3

    def test_defaults_are_none(self):
        err = MissingDataError("missing")
        assert err.column is None
        assert err.n_missing is None


class TestConvergenceError:

    def test_all_attributes(self):
        err = ConvergenceError(
            "GLMM did not converge",
            iterations=200,
            reason="ABNORMAL_TERMINATION_IN_LNSRCH",
            candidate_index=7,
        )
        assert str(err) == "GLMM did not converge"
        assert err.iterations == 200
        assert err.reason == "ABNORMAL_TERMINATION_IN_LNSRCH"
        assert err.candidate_index == 7

    def test_defaults_are_none(self):
        err = ConvergenceError("failed")
        assert err.iterations is None
        assert err.reason is None
        assert err.candidate_index is None

    def test_candidate_index_can_be_attached_later(self):
        err = ConvergenceError("failed", iterations=3)
        err.candidate_index = 4
        assert err.candidate_index == 4


class TestSelectionErrors:

    def test_insufficient_sample_size(self):
        with pytest.raises(InsufficientSampleSizeError) as exc_info:
            raise InsufficientSampleSizeError("AICc undefined", n=5, k=4, criterion='AICc')
        assert exc_info.value.n == 5
        assert exc_info.value.k == 4
        assert exc_info.value.criterion == 'AICc'

    def test_too_many_candidates(self):
        err = TooManyCandidatesError("ceiling", n_terms=13, limit=4096, n_candidates=4097)
        assert err.n_terms == 13
        assert err.limit == 4096
        assert err.n_candidates == 4097

    def test_empty_selection(self):
        err = EmptySelectionError("nothing", threshold=-0.5, n_ranked=8)
        assert err.threshold == -0.5
        assert err.n_ranked == 8

    def test_fitting_cancelled(self):
        err = FittingCancelled("stopped", n_completed=11)
        assert err.n_completed == 11
        assert "stopped" in str(err)
