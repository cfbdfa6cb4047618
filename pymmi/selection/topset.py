"""
Top-set selection.

The top set is the prefix of the ranked models with substantial support:
every model within ``delta`` criterion units of the best (Burnham &
Anderson's Δ ≤ 2 rule by default), or alternatively the smallest prefix
whose cumulative Akaike weight reaches a confidence level.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator
import warnings
import numpy as np
from numpy.typing import NDArray

from pymmi.core.exceptions import EmptySelectionError, ValidationError
from pymmi.core.validation import check_level, check_positive_int
from pymmi.model.specification import GlobalModel
from pymmi.selection._common import RankedEntry

DEFAULT_DELTA = 2.0


@dataclass(frozen=True)
class TopSet:
    """Models retained for averaging, best first.

    Attributes:
        entries: Retained ranked entries.
        rule: 'delta' or 'confidence'.
        threshold: The Δ cutoff or the cumulative-weight level.
        n_ranked: Size of the ranked set it was drawn from.
        warnings: Non-fatal issues found while selecting.
    """
    entries: tuple[RankedEntry, ...]
    rule: str
    threshold: float
    n_ranked: int
    warnings: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.entries:
            raise EmptySelectionError(
                "top set is empty", threshold=self.threshold, n_ranked=self.n_ranked,
            )

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[RankedEntry]:
        return iter(self.entries)

    def __getitem__(self, i: int) -> RankedEntry:
        return self.entries[i]

    @property
    def best(self) -> RankedEntry:
        return self.entries[0]

    @property
    def global_model(self) -> GlobalModel:
        return self.entries[0].candidate.global_model

    @property
    def weights(self) -> NDArray:
        """Akaike weights as computed over the full ranked set."""
        return np.array([e.weight for e in self.entries], dtype=np.float64)

    @property
    def normalized_weights(self) -> NDArray:
        """Weights renormalized to sum to 1 within the top set."""
        w = self.weights
        return w / w.sum()

    def __repr__(self) -> str:
        return (
            f"TopSet({len(self)} of {self.n_ranked} models, "
            f"{self.rule} <= {self.threshold})"
        )


def _ranked_entries(entries) -> tuple[RankedEntry, ...]:
    entries = tuple(getattr(entries, 'entries', entries))
    values = np.array([e.criterion_value for e in entries], dtype=np.float64)
    if np.any(np.diff(values) < 0):
        raise ValidationError("entries must be ranked by ascending criterion value")
    return entries


def select_top_set(
    entries: Iterable[RankedEntry],
    delta: float = DEFAULT_DELTA,
    *,
    n_units: int | None = None,
) -> TopSet:
    """Keep every ranked model with Δ ≤ ``delta``.

    Args:
        entries: Ranked entries (or a DredgeSolution), best first.
        delta: Δ threshold. 0 keeps only the best model (plus exact ties).
        n_units: Number of independent sampling units. A top set with more
            models than units triggers a UserWarning.

    Raises:
        ValidationError: If ``entries`` is not sorted ascending.
        EmptySelectionError: If ``delta`` < 0 or nothing qualifies.
    """
    entries = _ranked_entries(entries)
    delta = float(delta)
    if not delta >= 0.0:
        raise EmptySelectionError(
            f"delta must be >= 0, got {delta}", threshold=delta, n_ranked=len(entries),
        )

    chosen = tuple(e for e in entries if e.delta <= delta)
    if not chosen:
        raise EmptySelectionError(
            f"no model within delta <= {delta} ({len(entries)} ranked)",
            threshold=delta, n_ranked=len(entries),
        )

    warn_list = []
    if n_units is not None:
        check_positive_int(n_units, 'n_units')
        if len(chosen) > n_units:
            msg = (
                f"top set has {len(chosen)} models but only {n_units} independent "
                f"sampling units; averaged estimates may be unreliable"
            )
            warnings.warn(msg, UserWarning, stacklevel=2)
            warn_list.append(msg)

    return TopSet(
        entries=chosen,
        rule='delta',
        threshold=delta,
        n_ranked=len(entries),
        warnings=tuple(warn_list),
    )


def select_confidence_set(
    entries: Iterable[RankedEntry],
    level: float = 0.95,
) -> TopSet:
    """Smallest best-first prefix whose cumulative Akaike weight reaches ``level``."""
    check_level(level)
    entries = _ranked_entries(entries)
    if not entries:
        raise EmptySelectionError("no ranked models", threshold=level, n_ranked=0)

    cumulative = np.cumsum([e.weight for e in entries])
    k = min(int(np.searchsorted(cumulative, level, side='left')) + 1, len(entries))
    return TopSet(
        entries=entries[:k],
        rule='confidence',
        threshold=float(level),
        n_ranked=len(entries),
    )
