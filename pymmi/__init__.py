"""
PyMMI: information-theoretic multi-model inference for mixed models.

Fit every sub-model of a global GLMM, rank them by AIC, AICc or BIC,
select a top set and average coefficients with Akaike weights.

Submodules:
    model: Terms, formulas, global/candidate models, design encoding
    mixed: Random-intercept GLMM fitter
    fitting: Fitter protocol and FittedModel
    selection: Enumeration (dredge), criteria, ranking, top sets
    averaging: Full/conditional model averaging
    standardize: Predictor centering and scaling
    simulate: Simulated responses for teaching data
"""

__version__ = "0.1.0"

from pymmi.core import (
    DataSource,
    Result,
    PyMMIError,
    ValidationError,
    MissingDataError,
    ConvergenceError,
    InsufficientSampleSizeError,
    TooManyCandidatesError,
    EmptySelectionError,
    FittingCancelled,
)
from pymmi.families import resolve_family
from pymmi.model import Term, GlobalModel, CandidateModel, ModelFrame, parse_formula
from pymmi.mixed import glmm, GLMMSolution
from pymmi.fitting import FittedModel, ModelFitter, GLMMFitter
from pymmi.selection import (
    dredge,
    enumerate_candidates,
    DredgeSolution,
    select_top_set,
    select_confidence_set,
    TopSet,
    akaike_weights,
)
from pymmi.averaging import model_avg, AveragingSolution
from pymmi.standardize import standardize, Standardization
from pymmi.simulate import simulate_response
from pymmi.mmi import multimodel_inference, MMIResult

__all__ = [
    "__version__",
    "DataSource",
    "Result",
    "PyMMIError",
    "ValidationError",
    "MissingDataError",
    "ConvergenceError",
    "InsufficientSampleSizeError",
    "TooManyCandidatesError",
    "EmptySelectionError",
    "FittingCancelled",
    "resolve_family",
    "Term",
    "GlobalModel",
    "CandidateModel",
    "ModelFrame",
    "parse_formula",
    "glmm",
    "GLMMSolution",
    "FittedModel",
    "ModelFitter",
    "GLMMFitter",
    "dredge",
    "enumerate_candidates",
    "DredgeSolution",
    "select_top_set",
    "select_confidence_set",
    "TopSet",
    "akaike_weights",
    "model_avg",
    "AveragingSolution",
    "standardize",
    "Standardization",
    "simulate_response",
    "multimodel_inference",
    "MMIResult",
]
