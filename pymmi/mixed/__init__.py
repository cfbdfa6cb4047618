"""
Random-intercept generalized linear mixed models.

This is the default model fitter used by dredge.

Public API:
    glmm()        — fit a GLMM (Laplace) or gaussian LMM (ML)
    GLMMSolution  — result wrapper
"""

from pymmi.mixed.solvers import glmm
from pymmi.mixed.solution import GLMMSolution

__all__ = [
    "glmm",
    "GLMMSolution",
]
