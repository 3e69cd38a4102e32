"""
stockassess: maximum likelihood fitting of delay-difference stock assessment
models with objective functions differentiated by torch.autograd.

Usage
=====
>>> from stockassess import ObjectiveFunction, Fitter, default_registry
>>> registry = default_registry()
>>> _ = registry.include("DD", my_dd_fragment)
>>> objective = ObjectiveFunction({"model": "DD", **data}, parameters, registry=registry)
>>> result = Fitter(objective).fit()
"""

from .config import FitConfig, RunConfig, load_run_config
from .errors import (
    DuplicateModelError,
    FragmentLoadError,
    InputTypeError,
    MissingInputError,
    NonFiniteObjectiveError,
    StockAssessError,
    UnrecognizedModelError,
)
from .inputs import ModelInputs, ParameterLayout
from .models import (
    DelayDifference,
    DelayDifferenceStateSpace,
    ModelName,
    ModelRegistry,
    ObjectiveModel,
    default_registry,
    get_default_registry,
    load_fragment,
)
from .objective import ObjectiveFunction
from .selector import evaluate_model, parse_model_name, select_model
from .fitting import EarlyStopping, EstimateCheckpoint, Fitter, FitResult

__version__ = "0.1.0"

__all__ = [
    "FitConfig",
    "RunConfig",
    "load_run_config",
    "DuplicateModelError",
    "FragmentLoadError",
    "InputTypeError",
    "MissingInputError",
    "NonFiniteObjectiveError",
    "StockAssessError",
    "UnrecognizedModelError",
    "ModelInputs",
    "ParameterLayout",
    "DelayDifference",
    "DelayDifferenceStateSpace",
    "ModelName",
    "ModelRegistry",
    "ObjectiveModel",
    "default_registry",
    "get_default_registry",
    "load_fragment",
    "ObjectiveFunction",
    "evaluate_model",
    "parse_model_name",
    "select_model",
    "EarlyStopping",
    "EstimateCheckpoint",
    "Fitter",
    "FitResult",
]
