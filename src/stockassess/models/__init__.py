"""
Objective-function model variants for stock assessment.

Available Models
================
- DD:    Delay-difference model (``DelayDifference``)
- DD_SS: State-space delay-difference model (``DelayDifferenceStateSpace``)

Usage
=====
>>> from stockassess.models import default_registry
>>> registry = default_registry()
>>> registry.identifiers
('DD', 'DD_SS')
"""

from .base import Fragment, ObjectiveModel
from .registry import (
    ModelName,
    ModelRegistry,
    builtin_model,
    default_registry,
    get_default_registry,
    load_fragment,
)
from .delay_difference import DelayDifference, DelayDifferenceStateSpace

__all__ = [
    "Fragment",
    "ObjectiveModel",
    "ModelName",
    "ModelRegistry",
    "builtin_model",
    "default_registry",
    "get_default_registry",
    "load_fragment",
    "DelayDifference",
    "DelayDifferenceStateSpace",
]
