"""
Fitting candidates.

Public API:
    ModelFitter  — protocol: fit(candidate, frame) -> FittedModel
    GLMMFitter   — default fitter (random-intercept GLMM, ML/Laplace)
    FittedModel  — coefficients, SEs, logLik, df of one fitted candidate
"""

from pymmi.fitting.fitted import FittedModel
from pymmi.fitting.fitter import ModelFitter, GLMMFitter

__all__ = [
    "FittedModel",
    "ModelFitter",
    "GLMMFitter",
]
