"""Tests for dredge() with a canned-output fitter."""

import threading

import numpy as np
import pytest

from pymmi.core.exceptions import (
    EmptySelectionError, FittingCancelled, InsufficientSampleSizeError,
    ValidationError,
)
from pymmi.core.tolerances import EXACT
from pymmi.selection import DredgeSolution, dredge


def ranked_labels(solution):
    return [e.candidate.label for e in solution.entries]


class TestRanking:

    def test_aic_order(self, site_model, site_data, fake_fitter):
        sol = dredge(site_model, site_data, criterion='AIC', fitter=fake_fitter)
        assert isinstance(sol, DredgeSolution)
        assert ranked_labels(sol) == [
            'treatment+landuse',
            'treatment',
            'treatment+landuse+landuse:treatment',
            'landuse',
            '(Null)',
        ]
        np.testing.assert_allclose(
            [e.criterion_value for e in sol.entries], [305.0, 306.0, 306.6, 322.0, 324.0],
        )
        np.testing.assert_allclose([e.delta for e in sol.entries], [0.0, 1.0, 1.6, 17.0, 19.0])
        assert [e.rank for e in sol.entries] == [1, 2, 3, 4, 5]

    def test_weights(self, site_model, site_data, fake_fitter):
        sol = dredge(site_model, site_data, criterion='AIC', fitter=fake_fitter)
        assert sol.weights.sum() == pytest.approx(1.0, rel=EXACT.rtol, abs=EXACT.atol)
        assert np.all(np.diff(sol.weights) <= 0)
        assert sol.best.delta == 0.0
        assert sol.weights[0] / sol.weights[1] == pytest.approx(np.exp(0.5))

    def test_aicc_uses_nobs(self, site_model, site_data, fake_fitter):
        sol = dredge(site_model, site_data, nobs='site', criterion='aicc', fitter=fake_fitter)
        assert sol.criterion == 'AICc'
        assert sol.nobs == 16
        # the small-sample penalty favours the smaller model
        assert sol.best.candidate.label == 'treatment'
        assert sol.best.criterion_value == pytest.approx(308.0)

    def test_aic_without_nobs(self, site_model, site_data, fake_fitter):
        sol = dredge(site_model, site_data, criterion='AIC', fitter=fake_fitter)
        assert sol.nobs is None

    def test_nobs_required(self, site_model, site_data, fake_fitter):
        with pytest.raises(ValidationError, match="nobs"):
            dredge(site_model, site_data, fitter=fake_fitter)

    def test_insufficient_sample_size(self, site_model, site_data, fake_fitter):
        with pytest.raises(InsufficientSampleSizeError):
            dredge(site_model, site_data, nobs=5, fitter=fake_fitter)

    def test_every_candidate_fitted_once(self, site_model, site_data, fake_fitter):
        dredge(site_model, site_data, criterion='AIC', fitter=fake_fitter)
        assert sorted(fake_fitter.calls) == [0, 1, 2, 3, 4]

    def test_info(self, site_model, site_data, fake_fitter):
        sol = dredge(site_model, site_data, nobs='observations', fitter=fake_fitter)
        assert sol.info['n_candidates'] == 5
        assert sol.info['n_converged'] == 5
        assert sol.info['n_failed'] == 0
        assert sol.info['nobs'] == 96
        assert sol._result.backend_name == 'dredge_sequential'
        assert sol.timing is not None
        assert sol.warnings == ()

    def test_options_forwarded(self, site_model, site_data, fake_fitter):
        sol = dredge(site_model, site_data, criterion='AIC', fitter=fake_fitter,
                     fixed='treatment', max_terms=2)
        assert sorted(ranked_labels(sol)) == ['treatment', 'treatment+landuse']
        assert sol.info['fixed'] == ('treatment',)

    def test_accepts_dataframe(self, site_model, site_data, fake_fitter):
        sol = dredge(site_model, site_data.to_dataframe(), criterion='AIC', fitter=fake_fitter)
        assert len(sol) == 5

    def test_rejects_non_fitter(self, site_model, site_data):
        with pytest.raises(ValidationError, match="fitter"):
            dredge(site_model, site_data, criterion='AIC', fitter=object())


class TestFailures:

    def test_failed_candidate_recorded(self, site_model, site_data, make_fitter):
        fitter = make_fitter(fail={'landuse'})
        with pytest.warns(RuntimeWarning, match="failed to converge"):
            sol = dredge(site_model, site_data, criterion='AIC', fitter=fitter)

        assert len(sol) == 4
        assert 'landuse' not in ranked_labels(sol)
        assert len(sol.failed) == 1
        failed = sol.failed[0]
        assert failed.candidate.index == 2
        assert failed.error.candidate_index == 2
        assert 'diverged' in failed.message
        assert sol.info['n_failed'] == 1
        assert len(sol.warnings) == 1
        assert sol.weights.sum() == pytest.approx(1.0, rel=EXACT.rtol, abs=EXACT.atol)

    def test_failure_in_summary(self, site_model, site_data, make_fitter):
        with pytest.warns(RuntimeWarning):
            sol = dredge(site_model, site_data, criterion='AIC',
                         fitter=make_fitter(fail={'landuse'}))
        text = sol.summary()
        assert '1 candidate(s) failed to converge' in text
        assert 'fake divergence' in text

    def test_all_failed(self, site_model, site_data, make_fitter):
        fitter = make_fitter(fail={
            '(Null)', 'treatment', 'landuse', 'treatment+landuse',
            'treatment+landuse+landuse:treatment',
        })
        with pytest.warns(RuntimeWarning):
            with pytest.raises(EmptySelectionError) as exc_info:
                dredge(site_model, site_data, criterion='AIC', fitter=fitter)
        assert exc_info.value.n_ranked == 0


class TestParallel:

    def test_same_result_as_sequential(self, site_model, site_data, make_fitter):
        seq = dredge(site_model, site_data, nobs='site', fitter=make_fitter())
        par = dredge(site_model, site_data, nobs='site', fitter=make_fitter(delay=0.01),
                     n_workers=3)
        assert ranked_labels(par) == ranked_labels(seq)
        np.testing.assert_array_equal(par.weights, seq.weights)
        assert par._result.backend_name == 'dredge_threads'
        assert par.info['n_workers'] == 3

    def test_failures_merged_by_index(self, site_model, site_data, make_fitter):
        fitter = make_fitter(fail={'treatment', '(Null)'}, delay=0.01)
        with pytest.warns(RuntimeWarning):
            sol = dredge(site_model, site_data, criterion='AIC', fitter=fitter, n_workers=2)
        assert [f.candidate.index for f in sol.failed] == [0, 1]

    def test_bad_worker_count(self, site_model, site_data, fake_fitter):
        with pytest.raises(ValidationError):
            dredge(site_model, site_data, criterion='AIC', fitter=fake_fitter, n_workers=0)


class TestCancellation:

    def test_cancel_before_start(self, site_model, site_data, fake_fitter):
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(FittingCancelled) as exc_info:
            dredge(site_model, site_data, criterion='AIC', fitter=fake_fitter, cancel=cancel)
        assert exc_info.value.n_completed == 0
        assert fake_fitter.calls == []

    def test_cancel_midway(self, site_model, site_data, make_fitter):
        cancel = threading.Event()
        fitter = make_fitter(on_fit=lambda c: cancel.set() if c.index == 1 else None)
        with pytest.raises(FittingCancelled) as exc_info:
            dredge(site_model, site_data, criterion='AIC', fitter=fitter, cancel=cancel)
        assert exc_info.value.n_completed == 2
        assert fitter.calls == [0, 1]

    def test_cancel_in_pool(self, site_model, site_data, make_fitter):
        cancel = threading.Event()
        fitter = make_fitter(delay=0.01, on_fit=lambda c: cancel.set())
        with pytest.raises(FittingCancelled):
            dredge(site_model, site_data, criterion='AIC', fitter=fitter,
                   n_workers=2, cancel=cancel)
        assert len(fitter.calls) < 5


class TestOutput:

    def test_to_dataframe(self, site_model, site_data, fake_fitter):
        df = dredge(site_model, site_data, criterion='AIC', fitter=fake_fitter).to_dataframe()
        assert list(df.columns) == [
            'rank', 'index', 'treatment', 'landuse', 'landuse:treatment',
            'df', 'logLik', 'AIC', 'delta', 'weight',
        ]
        assert len(df) == 5
        assert bool(df.loc[0, 'treatment']) and bool(df.loc[0, 'landuse'])
        assert not bool(df.loc[0, 'landuse:treatment'])

    def test_summary(self, site_model, site_data, fake_fitter):
        sol = dredge(site_model, site_data, criterion='AIC', fitter=fake_fitter)
        text = sol.summary(max_rows=2)
        assert 'Model selection table (AIC' in text
        assert '+' in text
        assert '... 3 more models' in text

    def test_repr(self, site_model, site_data, fake_fitter):
        sol = dredge(site_model, site_data, criterion='AIC', fitter=fake_fitter)
        assert repr(sol) == 'DredgeSolution(5 ranked, 0 failed, criterion=AIC)'
