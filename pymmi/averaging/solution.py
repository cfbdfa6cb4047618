"""
Solution wrapper for a model average.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
import numpy as np
from numpy.typing import NDArray
from scipy import stats

from pymmi.core.datasource import DataSource
from pymmi.core.result import Result
from pymmi.core.validation import check_level
from pymmi.selection.topset import TopSet

from pymmi.averaging._common import AveragedCoefficient, AveragingParams

if TYPE_CHECKING:
    import pandas as pd


class AveragingSolution:
    """Akaike-weighted average over a top set of models."""

    def __init__(self, _result: Result[AveragingParams]):
        self._result = _result

    @property
    def params(self) -> AveragingParams:
        return self._result.params

    @property
    def info(self) -> dict:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    @property
    def top_set(self) -> TopSet:
        return self.params.top_set

    @property
    def weights(self) -> NDArray:
        """Renormalized top-set weights, best model first."""
        return self.params.weights

    @property
    def level(self) -> float:
        return self.params.level

    @property
    def coefficients(self) -> dict[str, AveragedCoefficient]:
        return {c.name: c for c in self.params.coefficients}

    @property
    def importance(self) -> dict[str, float]:
        """Relative importance per term, largest first."""
        return self.params.importance

    @property
    def full(self) -> dict[str, float]:
        return {c.name: c.full for c in self.params.coefficients}

    @property
    def conditional(self) -> dict[str, float]:
        return {c.name: c.conditional for c in self.params.coefficients}

    def confint(self, full: bool = True, level: float | None = None) -> dict[str, tuple[float, float]]:
        """Wald intervals est ± z·SE, at the fitted level unless ``level`` is given."""
        if level is None:
            return {
                c.name: (c.ci_full if full else c.ci_conditional)
                for c in self.params.coefficients
            }
        check_level(level)
        z = float(stats.norm.ppf(1.0 - (1.0 - level) / 2.0))
        out = {}
        for c in self.params.coefficients:
            est, se = (c.full, c.se_full) if full else (c.conditional, c.se_conditional)
            out[c.name] = (est - z * se, est + z * se)
        return out

    def predict(self, data: DataSource | None = None, *, include_random: bool = False) -> NDArray:
        """Model-averaged prediction on the response scale.

        Each model's prediction is back-transformed through its inverse
        link first; the weighted sum is taken on the response scale.
        """
        preds = [
            entry.fitted.predict(data, include_random=include_random, type='response')
            for entry in self.top_set
        ]
        return np.sum(self.weights[:, None] * np.vstack(preds), axis=0)

    def to_dataframe(self) -> 'pd.DataFrame':
        import pandas as pd

        rows = []
        for c in self.params.coefficients:
            rows.append({
                'coefficient': c.name,
                'term': c.term,
                'full': c.full,
                'se_full': c.se_full,
                'lower_full': c.ci_full[0],
                'upper_full': c.ci_full[1],
                'conditional': c.conditional,
                'se_conditional': c.se_conditional,
                'lower_conditional': c.ci_conditional[0],
                'upper_conditional': c.ci_conditional[1],
                'importance': c.importance,
                'n_models': c.n_models,
            })
        return pd.DataFrame(rows).set_index('coefficient')

    def summary(self) -> str:
        """MuMIn-style model-averaging summary."""
        params = self.params
        pct = f"{100 * params.level:g}%"

        lines = [f"Model-averaged coefficients ({len(self.top_set)} models, "
                 f"{self.top_set.rule} <= {self.top_set.threshold:g})"]
        lines.append("")
        lines.append("Component models and weights:")
        for entry, w in zip(self.top_set, params.weights):
            lines.append(f"  {entry.candidate.label:<40s} {w:7.3f}")
        lines.append("")

        header = (
            f" {'':>24s} {'Estimate':>10s} {'Adj. SE':>10s} "
            f"{'lower ' + pct:>12s} {'upper ' + pct:>12s}"
        )
        for title, full in (("(full average)", True), ("(conditional average)", False)):
            lines.append(f"Model-averaged coefficients: {title}")
            lines.append(header)
            for c in params.coefficients:
                est, se, ci = (
                    (c.full, c.se_full, c.ci_full) if full
                    else (c.conditional, c.se_conditional, c.ci_conditional)
                )
                lines.append(
                    f" {c.name:>24s} {est:10.4f} {se:10.4f} {ci[0]:12.4f} {ci[1]:12.4f}"
                )
            lines.append("")

        lines.append("Relative variable importance:")
        for term, imp in params.importance.items():
            n = sum(1 for e in self.top_set if e.candidate.has(term))
            lines.append(f"  {term:<30s} {imp:6.3f}  (in {n} models)")

        for w in self.warnings:
            lines.append(f"WARNING: {w}")

        return '\n'.join(lines)

    def __repr__(self) -> str:
        return (
            f"AveragingSolution({len(self.top_set)} models, "
            f"{len(self.params.coefficients)} coefficients)"
        )
