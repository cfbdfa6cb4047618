"""
Tests for DataSource.
"""

import numpy as np
import pandas as pd
import pytest

from pymmi.core.datasource import DataSource
from pymmi.core.exceptions import DimensionError, MissingDataError, ValidationError


class TestConstruction:

    def test_from_arrays_types(self):
        ds = DataSource.from_arrays(count=[1, 2, 3], site=['a', 'b', 'a'])
        assert ds['count'].dtype == np.float64
        assert ds['site'].dtype == object
        assert ds.is_numeric('count')
        assert not ds.is_numeric('site')
        assert ds.n_observations == 3

    def test_from_arrays_requires_columns(self):
        with pytest.raises(ValidationError):
            DataSource.from_arrays()

    def test_inconsistent_lengths(self):
        with pytest.raises(DimensionError):
            DataSource.from_arrays(count=[1, 2, 3], site=['a', 'b'])

    def test_from_dataframe(self):
        df = pd.DataFrame({'count': [0, 4, 2], 'landuse': ['forest', None, 'pasture']})
        ds = DataSource.from_dataframe(df)
        assert ds.is_numeric('count')
        assert ds['landuse'][1] is None
        assert ds.metadata['source'] == 'dataframe'

    def test_from_csv(self, tmp_path):
        path = tmp_path / "plots.csv"
        pd.DataFrame({'count': [1, 2], 'site': ['S1', 'S2']}).to_csv(path, index=False)
        ds = DataSource.from_file(path)
        assert ds.columns == ('count', 'site')
        assert ds.metadata['source_path'] == str(path)

    def test_unknown_file_format(self, tmp_path):
        with pytest.raises(ValidationError, match="Unknown file format"):
            DataSource.from_file(tmp_path / "plots.xlsx")


class TestAccess:

    def test_missing_column_lists_available(self):
        ds = DataSource.from_arrays(count=[1, 2])
        with pytest.raises(KeyError, match="count"):
            ds['site']

    def test_columns_are_read_only(self):
        ds = DataSource.from_arrays(count=[1.0, 2.0])
        with pytest.raises(ValueError):
            ds['count'][0] = 5.0

    def test_with_columns_returns_new_source(self):
        ds = DataSource.from_arrays(count=[1.0, 2.0])
        ds2 = ds.with_columns(elevation=[100.0, 200.0])
        assert 'elevation' in ds2
        assert 'elevation' not in ds

    def test_to_dataframe(self):
        ds = DataSource.from_arrays(count=[1.0, 2.0], site=['a', 'b'])
        df = ds.to_dataframe()
        assert list(df.columns) == ['count', 'site']
        assert df['count'].tolist() == [1.0, 2.0]


class TestRequire:

    def test_present_columns_pass(self):
        DataSource.from_arrays(count=[1, 2], site=['a', 'b']).require(['count', 'site'])

    def test_absent_column(self):
        ds = DataSource.from_arrays(count=[1, 2])
        with pytest.raises(MissingDataError) as exc_info:
            ds.require(['count', 'site'])
        assert exc_info.value.column == 'site'
        assert exc_info.value.n_missing is None

    def test_numeric_nan(self):
        ds = DataSource.from_arrays(count=[1.0, np.nan, np.nan])
        with pytest.raises(MissingDataError) as exc_info:
            ds.require(['count'])
        assert exc_info.value.n_missing == 2

    @pytest.mark.parametrize("missing", [None, '', '  ', np.nan])
    def test_label_nulls(self, missing):
        ds = DataSource.from_arrays(site=np.array(['a', missing, 'b'], dtype=object))
        with pytest.raises(MissingDataError) as exc_info:
            ds.require(['site'])
        assert exc_info.value.column == 'site'
        assert exc_info.value.n_missing == 1
