"""
Tests for ModelFrame validation and design-matrix encoding.
"""

import numpy as np
import pytest

from pymmi.core.datasource import DataSource
from pymmi.core.exceptions import MissingDataError, ValidationError
from pymmi.model.frame import INTERCEPT, ModelFrame
from pymmi.model.specification import GlobalModel


@pytest.fixture
def small_data():
    return DataSource.from_arrays(
        count=[0, 3, 1, 5, 2, 4],
        treatment=['control', 'mulch', 'control', 'mulch', 'control', 'mulch'],
        landuse=['forest', 'forest', 'pasture', 'pasture', 'crop', 'crop'],
        elevation=[100.0, 100.0, 250.0, 250.0, 400.0, 400.0],
        site=['A', 'A', 'B', 'B', 'C', 'C'],
    )


class TestBuild:

    def test_factor_levels_sorted(self, small_data):
        gm = GlobalModel.from_formula('count ~ treatment + landuse + (1 | site)')
        frame = ModelFrame.build(gm, small_data)
        assert frame.factor_levels == {
            'treatment': ('control', 'mulch'),
            'landuse': ('crop', 'forest', 'pasture'),
        }
        assert frame.n == 6
        assert frame.n_levels('site') == 3

    def test_unknown_group(self, small_data):
        gm = GlobalModel.from_formula('count ~ treatment + (1 | site)')
        frame = ModelFrame.build(gm, small_data)
        with pytest.raises(ValidationError, match="not a grouping factor"):
            frame.n_levels('landuse')

    def test_missing_column(self, small_data):
        gm = GlobalModel.from_formula('count ~ rainfall + (1 | site)')
        with pytest.raises(MissingDataError) as exc_info:
            ModelFrame.build(gm, small_data)
        assert exc_info.value.column == 'rainfall'

    def test_null_in_predictor(self, small_data):
        data = small_data.with_columns(elevation=[1.0, np.nan, 2.0, 3.0, 4.0, 5.0])
        gm = GlobalModel.from_formula('count ~ elevation + (1 | site)')
        with pytest.raises(MissingDataError):
            ModelFrame.build(gm, data)

    def test_negative_counts(self, small_data):
        data = small_data.with_columns(count=[0, -1, 1, 5, 2, 4])
        gm = GlobalModel.from_formula('count ~ treatment + (1 | site)')
        with pytest.raises(ValidationError, match=">= 0"):
            ModelFrame.build(gm, data)

    def test_binomial_response(self, small_data):
        gm = GlobalModel.from_formula('count ~ treatment + (1 | site)', family='binomial')
        with pytest.raises(ValidationError, match="0/1"):
            ModelFrame.build(gm, small_data)

    def test_label_response(self, small_data):
        gm = GlobalModel.from_formula('landuse ~ treatment + (1 | site)')
        with pytest.raises(ValidationError, match="numeric"):
            ModelFrame.build(gm, small_data)

    def test_single_level_factor(self, small_data):
        data = small_data.with_columns(treatment=['control'] * 6)
        gm = GlobalModel.from_formula('count ~ treatment + (1 | site)')
        with pytest.raises(ValidationError, match="level"):
            ModelFrame.build(gm, data)


class TestDesignMatrix:

    def test_treatment_coding(self, small_data):
        gm = GlobalModel.from_formula('count ~ treatment + landuse + (1 | site)')
        frame = ModelFrame.build(gm, small_data)
        dm = frame.design_matrix(gm.terms)
        assert dm.coef_names == (INTERCEPT, 'treatmentmulch', 'landuseforest', 'landusepasture')
        assert dm.coef_terms == (INTERCEPT, 'treatment', 'landuse', 'landuse')
        np.testing.assert_array_equal(dm.X[:, 0], np.ones(6))
        np.testing.assert_array_equal(dm.X[:, 1], [0, 1, 0, 1, 0, 1])
        np.testing.assert_array_equal(dm.X[:, 2], [1, 1, 0, 0, 0, 0])
        np.testing.assert_array_equal(dm.X[:, 3], [0, 0, 1, 1, 0, 0])

    def test_interaction_columns(self, small_data):
        gm = GlobalModel.from_formula('count ~ treatment * elevation + (1 | site)')
        frame = ModelFrame.build(gm, small_data)
        dm = frame.design_matrix(gm.terms)
        assert dm.coef_names[-1] == 'elevation:treatmentmulch'
        assert dm.coef_terms[-1] == 'elevation:treatment'
        np.testing.assert_array_equal(dm.X[:, -1], [0, 100, 0, 250, 0, 400])

    def test_subset_of_terms(self, small_data):
        gm = GlobalModel.from_formula('count ~ treatment + elevation + (1 | site)')
        frame = ModelFrame.build(gm, small_data)
        assert frame.design_matrix(()).coef_names == (INTERCEPT,)
        assert frame.design_matrix(gm.terms[1:]).coef_names == (INTERCEPT, 'elevation')

    def test_new_data_uses_training_levels(self, small_data):
        gm = GlobalModel.from_formula('count ~ landuse + (1 | site)')
        frame = ModelFrame.build(gm, small_data)
        new = DataSource.from_arrays(landuse=['pasture', 'crop'])
        dm = frame.design_matrix(gm.terms, new)
        np.testing.assert_array_equal(dm.X, [[1, 0, 1], [1, 0, 0]])

    def test_new_data_unknown_level(self, small_data):
        gm = GlobalModel.from_formula('count ~ landuse + (1 | site)')
        frame = ModelFrame.build(gm, small_data)
        new = DataSource.from_arrays(landuse=['wetland'])
        with pytest.raises(ValidationError, match="wetland"):
            frame.design_matrix(gm.terms, new)
