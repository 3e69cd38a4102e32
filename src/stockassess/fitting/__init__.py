"""Fitting utilities."""

from .fitter import Fitter, FitResult
from .callbacks import Callback, EarlyStopping, EstimateCheckpoint

__all__ = [
    "Fitter",
    "FitResult",
    "Callback",
    "EarlyStopping",
    "EstimateCheckpoint",
]
