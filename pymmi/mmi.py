"""
End-to-end multi-model inference.

    (standardize →) dredge → top set → model average

Usage:
    from pymmi import GlobalModel, DataSource, multimodel_inference

    gm = GlobalModel.from_formula(
        'count ~ treatment * landuse + (1 | site)', family='poisson')
    res = multimodel_inference(gm, DataSource.from_file('plots.csv'),
                               nobs='site', delta=2.0)
    print(res.selection.summary())
    print(res.averaging.summary())
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pymmi.averaging import AveragingSolution, DEFAULT_LEVEL, model_avg
from pymmi.core.datasource import DataSource
from pymmi.model.specification import GlobalModel
from pymmi.selection import DEFAULT_DELTA, DredgeSolution, TopSet, dredge, select_top_set
from pymmi.standardize import Standardization, standardize as _standardize


@dataclass(frozen=True)
class MMIResult:
    """Everything produced by one multi-model inference run.

    Attributes:
        selection: Ranked candidate models.
        top_set: Models retained for averaging.
        averaging: Model-averaged coefficients and importance.
        standardization: Predictor scaling, if standardization was requested.
    """
    selection: DredgeSolution
    top_set: TopSet
    averaging: AveragingSolution
    standardization: Standardization | None = None

    @property
    def warnings(self) -> tuple[str, ...]:
        std = self.standardization.warnings if self.standardization is not None else ()
        return std + self.selection.warnings + self.averaging.warnings

    def summary(self, max_rows: int | None = 20) -> str:
        parts = [self.selection.summary(max_rows=max_rows), "", self.averaging.summary()]
        if self.standardization is not None:
            scaled = ', '.join(
                f"{v} (mean {m:.4g}, scale {s:.4g})"
                for v, (m, s) in self.standardization.params.items()
            )
            parts += ["", f"Predictors standardized: {scaled or 'none'}"]
        return '\n'.join(parts)


def multimodel_inference(
    global_model: GlobalModel,
    data: DataSource,
    *,
    nobs: int | str | None = None,
    criterion: str = 'AICc',
    delta: float = DEFAULT_DELTA,
    level: float = DEFAULT_LEVEL,
    standardize: bool = False,
    scale_factor: float = 2.0,
    n_units: int | None = None,
    **dredge_options: Any,
) -> MMIResult:
    """Run the whole pipeline on one global model.

    Args:
        global_model: The maximal model.
        data: Observations (DataSource or pandas DataFrame).
        nobs: Effective sample size; see dredge().
        criterion: 'AIC', 'AICc' (default) or 'BIC'.
        delta: Top-set threshold.
        level: Confidence level of the averaged intervals.
        standardize: Center and scale numeric predictors first.
        scale_factor: SDs per unit when standardizing.
        n_units: Number of independent sampling units; warns when the top
            set holds more models than that.
        **dredge_options: fitter, n_workers, cancel, fixed, marginality,
            min_terms, max_terms, max_candidates.

    Returns:
        MMIResult.
    """
    if not isinstance(data, DataSource):
        data = DataSource.from_dataframe(data)

    standardization = None
    if standardize:
        data, standardization = _standardize(data, global_model, scale_factor=scale_factor)

    selection = dredge(global_model, data, nobs=nobs, criterion=criterion, **dredge_options)
    top_set = select_top_set(selection.entries, delta, n_units=n_units)
    averaging = model_avg(top_set, level=level)

    return MMIResult(
        selection=selection,
        top_set=top_set,
        averaging=averaging,
        standardization=standardization,
    )
