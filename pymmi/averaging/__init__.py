"""
Multi-model averaging.

Public API:
    model_avg()          — full and conditional Akaike-weighted averages
    AveragingSolution    — averages, unconditional SEs, CIs, importance,
                           averaged predictions
    AveragedCoefficient
"""

from pymmi.averaging._common import AveragedCoefficient, AveragingParams
from pymmi.averaging.solution import AveragingSolution
from pymmi.averaging.solvers import DEFAULT_LEVEL, model_avg

__all__ = [
    "model_avg",
    "AveragingSolution",
    "AveragedCoefficient",
    "AveragingParams",
    "DEFAULT_LEVEL",
]
