"""
Model frame: the global model bound to a validated dataset.

ModelFrame checks the data once, before any candidate is fitted, and
then turns any subset of the global terms into a fixed-effects design
matrix. Label columns are factors with treatment coding (sorted levels,
first level is the baseline); numeric columns enter as-is. Interaction
columns are element-wise products of every combination of the
constituent columns.

Coefficient names follow R: a factor's columns are named variable+level
('landuseforest'), interaction columns join their parts with ':'.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import product
from typing import Iterable
import numpy as np
from numpy.typing import NDArray

from pymmi.core.datasource import DataSource
from pymmi.core.exceptions import ValidationError
from pymmi.core.validation import check_finite
from pymmi.model.specification import GlobalModel
from pymmi.model.terms import Term

INTERCEPT = '(Intercept)'


@dataclass(frozen=True)
class DesignMatrix:
    """Fixed-effects design for one candidate.

    Attributes:
        X: (n, p) float64 matrix, intercept column first.
        coef_names: Column names.
        coef_terms: Owning term name for each column ('(Intercept)' first).
    """
    X: NDArray
    coef_names: tuple[str, ...]
    coef_terms: tuple[str, ...]


@dataclass(frozen=True)
class ModelFrame:
    """Validated data for a global model.

    Attributes:
        global_model: The model the data was validated against.
        data: The source table (read-only).
        y: Response (n,).
        groups: Grouping factor → labels (n,).
        factor_levels: Factor variable → sorted levels.
        n: Number of observations.
    """
    global_model: GlobalModel
    data: DataSource
    y: NDArray
    groups: dict[str, NDArray]
    factor_levels: dict[str, tuple[str, ...]]
    n: int

    @classmethod
    def build(cls, global_model: GlobalModel, data: DataSource) -> 'ModelFrame':
        """Validate ``data`` for ``global_model``.

        Raises:
            MissingDataError: A required column is absent or has nulls.
            ValidationError: Non-numeric response, non-finite predictor,
                single-level factor, or a response outside the family's
                support.
        """
        data.require(global_model.required_columns())

        response = global_model.response
        if not data.is_numeric(response):
            raise ValidationError(f"response '{response}' must be numeric")
        y = np.asarray(data[response], dtype=np.float64)
        check_finite(y, response)

        family = global_model.family.name
        if family == 'poisson' and np.any(y < 0):
            raise ValidationError(f"response '{response}': poisson counts must be >= 0")
        if family == 'binomial' and not np.all((y == 0) | (y == 1)):
            raise ValidationError(f"response '{response}': binomial response must be 0/1")

        factor_levels: dict[str, tuple[str, ...]] = {}
        for var in global_model.variables:
            if data.is_numeric(var):
                check_finite(np.asarray(data[var]), var)
                continue
            levels = tuple(sorted(set(data[var])))
            if len(levels) < 2:
                raise ValidationError(
                    f"factor '{var}' has {len(levels)} level(s), need at least 2"
                )
            factor_levels[var] = levels

        groups = {g: np.asarray(data[g]) for g in global_model.groups}

        return cls(
            global_model=global_model,
            data=data,
            y=y,
            groups=groups,
            factor_levels=factor_levels,
            n=data.n_observations,
        )

    def n_levels(self, group: str) -> int:
        """Number of distinct levels of a grouping factor."""
        if group not in self.groups:
            raise ValidationError(
                f"'{group}' is not a grouping factor. Groups: {list(self.groups)}"
            )
        return len(np.unique(self.groups[group]))

    def _variable_columns(self, var: str, data: DataSource) -> tuple[NDArray, list[str]]:
        values = data[var]
        if var not in self.factor_levels:
            arr = np.asarray(values, dtype=np.float64)
            check_finite(arr, var)
            return arr.reshape(-1, 1), [var]

        levels = self.factor_levels[var]
        unknown = set(values) - set(levels)
        if unknown:
            raise ValidationError(
                f"factor '{var}' has levels not seen when fitting: {sorted(map(str, unknown))}"
            )
        contrasts = levels[1:]
        cols = np.column_stack([(values == lvl).astype(np.float64) for lvl in contrasts])
        return cols, [f"{var}{lvl}" for lvl in contrasts]

    def design_matrix(
        self,
        terms: Iterable[Term],
        data: DataSource | None = None,
    ) -> DesignMatrix:
        """Encode the intercept plus ``terms``.

        Args:
            terms: Terms to include (normally a candidate's terms).
            data: New data to encode with the training factor levels.
                Default: the frame's own data.
        """
        source = self.data if data is None else data
        terms = tuple(terms)
        if data is not None:
            data.require({v for t in terms for v in t.variables})
        n = source.n_observations

        blocks = [np.ones((n, 1), dtype=np.float64)]
        names = [INTERCEPT]
        owners = [INTERCEPT]
        cache: dict[str, tuple[NDArray, list[str]]] = {}

        for term in terms:
            parts = []
            for var in term.variables:
                if var not in cache:
                    cache[var] = self._variable_columns(var, source)
                parts.append(cache[var])

            for combo in product(*(range(cols.shape[1]) for cols, _ in parts)):
                col = np.ones(n, dtype=np.float64)
                label = []
                for (cols, col_names), j in zip(parts, combo):
                    col = col * cols[:, j]
                    label.append(col_names[j])
                blocks.append(col.reshape(-1, 1))
                names.append(':'.join(label))
                owners.append(term.name)

        return DesignMatrix(
            X=np.hstack(blocks),
            coef_names=tuple(names),
            coef_terms=tuple(owners),
        )
