"""
Delay-difference stock assessment variants.

Available Models
================
- DD:    Delay-difference biomass dynamics model
- DD_SS: State-space delay-difference model (latent recruitment/biomass
         states estimated alongside the leading parameters)

Both variants are slots: the population dynamics and likelihood terms live
in the model-definition fragment included into the slot, e.g.

>>> registry = default_registry()
>>> _ = registry.include("DD", my_dd_fragment)

Without a fragment the variant contributes nothing and the objective
evaluates to zero.
"""

from .base import ObjectiveModel
from .registry import ModelName, builtin_model


@builtin_model
class DelayDifference(ObjectiveModel):
    name = ModelName.DD.value
    description = "Delay-difference model"


@builtin_model
class DelayDifferenceStateSpace(ObjectiveModel):
    name = ModelName.DD_SS.value
    description = "State-space delay-difference model"
