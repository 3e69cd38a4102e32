"""
Model selection: one identifier in, exactly one branch executed.

Every call resolves the identifier afresh. Nothing is cached between calls,
so evaluating "DD" and then "DD_SS" gives the same results as evaluating
each on its own.
"""

from __future__ import annotations

import logging
from typing import Optional

import torch

from .errors import UnrecognizedModelError
from .inputs import ModelInputs
from .models.base import ObjectiveModel
from .models.registry import Identifier, ModelName, ModelRegistry, get_default_registry

logger = logging.getLogger(__name__)


def parse_model_name(value: object) -> ModelName:
    """
    Validate an identifier coming from outside (CLI, config file).

    Matching is exact and case-sensitive; surrounding whitespace is not
    stripped.
    """
    recognized = [name.value for name in ModelName]
    if not isinstance(value, str):
        raise UnrecognizedModelError(value, recognized)
    try:
        return ModelName(value)
    except ValueError:
        raise UnrecognizedModelError(value, recognized) from None


def select_model(
    identifier: Identifier, registry: Optional[ModelRegistry] = None
) -> ObjectiveModel:
    """
    Resolve ``identifier`` to its registered variant.

    Raises
    ------
    UnrecognizedModelError
        If no registered variant carries this exact identifier
    """
    if registry is None:
        registry = get_default_registry()
    model = registry.resolve(identifier)
    logger.debug("Selected model %s", model.name)
    return model


def evaluate_model(
    identifier: Identifier,
    inputs: ModelInputs,
    registry: Optional[ModelRegistry] = None,
) -> torch.Tensor:
    """
    Run the branch selected by ``identifier`` and return the objective.

    The objective starts at zero and the branch adds its contribution. A
    branch that contributes nothing leaves it at zero.
    """
    model = select_model(identifier, registry)
    nll = inputs.zero()
    contribution = model.evaluate(inputs)
    if contribution is not None:
        nll = nll + contribution
    return nll
