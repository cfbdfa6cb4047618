"""
Solution wrapper for a dredge run.

DredgeSolution wraps Result[SelectionParams]: the ranked model table,
the candidates that failed to converge, and shortcuts to the top-set
selectors.
"""

from __future__ import annotations

from typing import Iterator, TYPE_CHECKING
import numpy as np
from numpy.typing import NDArray

from pymmi.core.result import Result
from pymmi.model.specification import GlobalModel
from pymmi.model.terms import Term
from pymmi.selection._common import FailedCandidate, RankedEntry, SelectionParams
from pymmi.selection.topset import (
    DEFAULT_DELTA, TopSet, select_confidence_set, select_top_set,
)

if TYPE_CHECKING:
    import pandas as pd


class DredgeSolution:
    """Ranked sub-models of a global model."""

    def __init__(self, _result: Result[SelectionParams]):
        self._result = _result

    @property
    def params(self) -> SelectionParams:
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
    def global_model(self) -> GlobalModel:
        return self.params.global_model

    @property
    def entries(self) -> tuple[RankedEntry, ...]:
        """Converged models, best first."""
        return self.params.entries

    @property
    def failed(self) -> tuple[FailedCandidate, ...]:
        """Candidates that did not converge, in enumeration order."""
        return self.params.failed

    @property
    def criterion(self) -> str:
        return self.params.criterion

    @property
    def nobs(self) -> int | None:
        return self.params.nobs

    @property
    def terms(self) -> tuple[Term, ...]:
        return self.params.terms

    @property
    def weights(self) -> NDArray:
        return np.array([e.weight for e in self.entries], dtype=np.float64)

    @property
    def best(self) -> RankedEntry:
        return self.entries[0]

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[RankedEntry]:
        return iter(self.entries)

    def top_set(self, delta: float = DEFAULT_DELTA, *, n_units: int | None = None) -> TopSet:
        return select_top_set(self.entries, delta, n_units=n_units)

    def confidence_set(self, level: float = 0.95) -> TopSet:
        return select_confidence_set(self.entries, level)

    def to_dataframe(self) -> 'pd.DataFrame':
        """Model table: one row per ranked model, term presence as booleans."""
        import pandas as pd

        rows = []
        for e in self.entries:
            row = {'rank': e.rank, 'index': e.candidate.index}
            for t in self.terms:
                row[t.name] = e.candidate.has(t)
            row.update({
                'df': e.df,
                'logLik': e.log_likelihood,
                self.criterion: e.criterion_value,
                'delta': e.delta,
                'weight': e.weight,
            })
            rows.append(row)
        return pd.DataFrame(rows)

    def summary(self, max_rows: int | None = None) -> str:
        """MuMIn-style model selection table."""
        entries = self.entries if max_rows is None else self.entries[:max_rows]
        names = [t.name for t in self.terms]
        widths = [max(len(n), 1) for n in names]

        lines = [f"Model selection table ({self.criterion}, n = {self.nobs})"]
        lines.append(f"Global model: {self.global_model.formula}")
        lines.append("")
        header = f"{'rank':>4s} " + ' '.join(f"{n:>{w}s}" for n, w in zip(names, widths))
        header += f" {'df':>3s} {'logLik':>9s} {self.criterion:>9s} {'delta':>7s} {'weight':>7s}"
        lines.append(header)
        for e in entries:
            marks = ' '.join(
                f"{('+' if e.candidate.has(t) else ''):>{w}s}"
                for t, w in zip(self.terms, widths)
            )
            lines.append(
                f"{e.rank:4d} {marks} {e.df:3d} {e.log_likelihood:9.3f} "
                f"{e.criterion_value:9.2f} {e.delta:7.2f} {e.weight:7.3f}"
            )
        if max_rows is not None and len(self.entries) > max_rows:
            lines.append(f"... {len(self.entries) - max_rows} more models")
        lines.append(f"Models ranked by {self.criterion}")

        if self.failed:
            lines.append("")
            lines.append(f"{len(self.failed)} candidate(s) failed to converge:")
            for f in self.failed:
                lines.append(f"  [{f.candidate.index}] {f.candidate.label}: {f.error.reason or f.message}")

        return '\n'.join(lines)

    def __repr__(self) -> str:
        return (
            f"DredgeSolution({len(self.entries)} ranked, {len(self.failed)} failed, "
            f"criterion={self.criterion})"
        )
