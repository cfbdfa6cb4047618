"""
Column-oriented DataSource for PyMMI.

DataSource is the "I have a table" abstraction. It knows nothing about
models: it stores named columns, tells numeric columns apart from label
columns, and refuses missing values when asked for the columns a model
needs.

Usage:
    from pymmi import DataSource

    ds = DataSource.from_file("sites.csv")
    ds = DataSource.from_dataframe(df)
    ds = DataSource.from_arrays(count=y, treatment=trt, site=site_ids)

    ds.keys()        # frozenset({'count', 'treatment', 'site'})
    ds['count']      # float64 array
    ds['site']       # object array of str labels
    ds.require(['count', 'site'])   # MissingDataError on absent/null

Stored arrays are read-only, so a DataSource can be shared between
concurrent model fits without copying.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, TYPE_CHECKING
import numpy as np
from numpy.typing import NDArray

from pymmi.core.exceptions import DimensionError, MissingDataError, ValidationError

if TYPE_CHECKING:
    import pandas as pd


def _is_null(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, (float, np.floating)) and np.isnan(value):
        return True
    return isinstance(value, str) and value.strip() == ''


def _coerce_column(name: str, values: Any) -> NDArray:
    """Numeric data -> float64 (NaN marks missing); anything else -> str labels."""
    arr = np.asarray(values)
    if arr.ndim != 1:
        raise DimensionError(
            f"column '{name}': expected 1D, got {arr.ndim}D with shape {arr.shape}"
        )

    if arr.dtype == bool or np.issubdtype(arr.dtype, np.number):
        out = arr.astype(np.float64)
    else:
        out = np.empty(arr.shape[0], dtype=object)
        for i, v in enumerate(arr):
            out[i] = None if _is_null(v) else str(v)

    out.flags.writeable = False
    return out


@dataclass(frozen=True)
class DataSource:
    """
    Immutable table of named, equal-length columns.

    Construct via factory classmethods, not directly.
    """
    _data: dict[str, NDArray]
    _metadata: dict[str, Any] = field(default_factory=dict)

    # === Column access ===

    def keys(self) -> frozenset[str]:
        """Return the names of all available columns."""
        return frozenset(self._data.keys())

    @property
    def columns(self) -> tuple[str, ...]:
        """Column names in insertion order."""
        return tuple(self._data.keys())

    def __getitem__(self, key: str) -> NDArray:
        if key not in self._data:
            raise KeyError(
                f"DataSource has no column '{key}'. Available: {sorted(self.keys())}"
            )
        return self._data[key]

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def is_numeric(self, column: str) -> bool:
        """True if the column holds numbers rather than labels."""
        return self[column].dtype != object

    # === Properties ===

    @property
    def n_observations(self) -> int:
        """Number of rows."""
        return self._metadata.get('n_observations', 0)

    @property
    def metadata(self) -> dict[str, Any]:
        return self._metadata.copy()

    # === Validation ===

    def require(self, columns: Iterable[str]) -> None:
        """
        Check that every column exists and holds no missing values.

        Raises:
            MissingDataError: On the first absent or incomplete column.
        """
        for col in columns:
            if col not in self._data:
                raise MissingDataError(
                    f"required column '{col}' not found. "
                    f"Available: {sorted(self.keys())}",
                    column=col,
                )
            arr = self._data[col]
            if arr.dtype == object:
                n_missing = sum(1 for v in arr if v is None)
            else:
                n_missing = int(np.sum(np.isnan(arr)))
            if n_missing:
                raise MissingDataError(
                    f"column '{col}' has {n_missing} missing value(s); "
                    f"rows are not dropped automatically",
                    column=col,
                    n_missing=n_missing,
                )

    # === Derivation ===

    def with_columns(self, **columns: Any) -> DataSource:
        """Return a new DataSource with columns added or replaced."""
        storage = dict(self._data)
        for name, values in columns.items():
            storage[name] = _coerce_column(name, values)
        return DataSource._from_storage(storage, {**self._metadata, 'source': 'derived'})

    # === Factory Methods ===

    @classmethod
    def _from_storage(cls, storage: dict[str, NDArray], metadata: dict[str, Any]) -> DataSource:
        lengths = {name: arr.shape[0] for name, arr in storage.items()}
        if len(set(lengths.values())) > 1:
            details = ", ".join(f"{k}={v}" for k, v in lengths.items())
            raise DimensionError(f"Inconsistent column lengths: {details}")
        n_obs = next(iter(lengths.values()), 0)
        return cls(_data=storage, _metadata={**metadata, 'n_observations': n_obs})

    @classmethod
    def from_arrays(cls, **columns: Any) -> DataSource:
        """Construct from named array-likes."""
        if not columns:
            raise ValidationError("from_arrays: at least one column required")
        storage = {name: _coerce_column(name, values) for name, values in columns.items()}
        return cls._from_storage(storage, {'source': 'arrays'})

    @classmethod
    def from_file(cls, path: str | Path, *, columns: list[str] | None = None) -> DataSource:
        """Construct from a CSV or TSV file."""
        import pandas as pd

        path = Path(path)
        suffix = path.suffix.lower()
        if suffix == '.csv':
            df = pd.read_csv(path, usecols=columns)
        elif suffix == '.tsv':
            df = pd.read_csv(path, sep='\t', usecols=columns)
        else:
            raise ValidationError(f"Unknown file format: {suffix}")
        return cls.from_dataframe(df, source_path=str(path))

    @classmethod
    def from_dataframe(cls, df: 'pd.DataFrame', *, source_path: str | None = None) -> DataSource:
        """Construct from a pandas DataFrame."""
        import pandas as pd

        storage: dict[str, NDArray] = {}
        for col in df.columns:
            series = df[col]
            if pd.api.types.is_bool_dtype(series) or pd.api.types.is_numeric_dtype(series):
                values = series.to_numpy(dtype=np.float64, na_value=np.nan)
            else:
                values = series.to_numpy(dtype=object)
            storage[str(col)] = _coerce_column(str(col), values)

        metadata: dict[str, Any] = {'source': 'dataframe'}
        if source_path:
            metadata['source_path'] = source_path
        return cls._from_storage(storage, metadata)

    def to_dataframe(self) -> 'pd.DataFrame':
        """Export to a pandas DataFrame (copies the columns)."""
        import pandas as pd
        return pd.DataFrame({name: np.array(arr) for name, arr in self._data.items()})
