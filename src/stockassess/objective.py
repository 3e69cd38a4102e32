"""
Differentiable objective function over a flat parameter vector.

``ObjectiveFunction`` is the piece an optimizer talks to. Each call builds
fresh ``ModelInputs`` from the stored data and the candidate vector, reads
the ``"model"`` identifier, runs the selected branch and returns the scalar.
Gradients and Hessians come from ``torch.autograd``.

Usage
=====
>>> obj = ObjectiveFunction({"model": "DD"}, {"log_q": 0.0})
>>> obj.fn(obj.par)
0.0
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

import numpy as np
import torch

from .errors import InputTypeError, NonFiniteObjectiveError, UnrecognizedModelError
from .inputs import ModelInputs, ParameterLayout
from .models.registry import ModelRegistry, get_default_registry
from .selector import evaluate_model, select_model

logger = logging.getLogger(__name__)


class ObjectiveFunction:
    """
    Objective function for one model run.

    Parameters
    ----------
    data : mapping
        Data entries; must contain the string ``"model"``
    parameters : mapping
        Initial parameter values (the starting point of the fit)
    registry : ModelRegistry, optional
        Where identifiers are resolved. Defaults to the process-wide registry
    fixed : iterable of str, optional
        Parameters held at their initial values
    check_finite : bool, default=True
        Raise ``NonFiniteObjectiveError`` on NaN/Inf objective values
    dtype : torch.dtype, default=torch.float64
        Floating point type used throughout

    Attributes
    ----------
    layout : ParameterLayout
        Mapping between named parameters and the free vector
    par : np.ndarray
        Initial free vector

    Raises
    ------
    UnrecognizedModelError
        At construction if ``data["model"]`` names no registered model
    """

    def __init__(
        self,
        data: Mapping[str, Any],
        parameters: Mapping[str, Any],
        registry: Optional[ModelRegistry] = None,
        fixed: Iterable[str] = (),
        check_finite: bool = True,
        dtype: torch.dtype = torch.float64,
    ):
        self.data = dict(data)
        self.registry = registry
        self.check_finite = check_finite
        self.dtype = dtype
        self.layout = ParameterLayout(parameters, fixed=fixed, dtype=dtype)

        # Fail on a bad identifier now rather than inside the optimizer
        model = select_model(self.identifier, registry)
        logger.info(
            "Objective built for model %s with %d free parameter(s)",
            model.name,
            self.layout.size,
        )

    def __repr__(self) -> str:
        return (
            f"ObjectiveFunction(model={self.data.get('model')!r}, "
            f"n_par={self.layout.size})"
        )

    @property
    def identifier(self) -> str:
        return self._identifier(ModelInputs(self.data, dtype=self.dtype))

    def _identifier(self, inputs: ModelInputs) -> str:
        try:
            return inputs.data_string("model")
        except InputTypeError:
            # A non-string entry names no model
            registry = self.registry if self.registry is not None else get_default_registry()
            raise UnrecognizedModelError(self.data["model"], registry.identifiers) from None

    @property
    def par(self) -> np.ndarray:
        return self.layout.initial_vector().numpy()

    def as_vector(self, x: Any) -> torch.Tensor:
        if x is None:
            return self.layout.initial_vector()
        if isinstance(x, torch.Tensor):
            return x.to(self.dtype)
        return torch.as_tensor(np.asarray(x, dtype=np.float64), dtype=self.dtype)

    def inputs(self, x: Any = None) -> ModelInputs:
        """Inputs a fragment sees at free vector ``x``."""
        values = self.layout.unflatten(self.as_vector(x))
        return ModelInputs(self.data, values, dtype=self.dtype)

    def __call__(self, x: Any = None) -> torch.Tensor:
        """
        Evaluate the objective at ``x`` (initial values if None).

        Returns a 0-dim tensor attached to the autograd graph of ``x``.
        """
        inputs = self.inputs(x)
        identifier = self._identifier(inputs)
        value = evaluate_model(identifier, inputs, self.registry)
        if self.check_finite and not torch.isfinite(value):
            raise NonFiniteObjectiveError(
                f"Objective for model {identifier!r} "
                f"is not finite: {value.item()}"
            )
        return value

    def fn(self, x: Any = None) -> float:
        with torch.no_grad():
            return float(self(x))

    def gr(self, x: Any = None) -> np.ndarray:
        """Gradient of the objective with respect to the free vector."""
        # Zero when the branch never touches the parameters
        return self.fn_gr(x)[1]

    def fn_gr(self, x: Any = None) -> Tuple[float, np.ndarray]:
        """Objective and gradient from a single forward/backward pass."""
        x = self.as_vector(x).detach().clone().requires_grad_(True)
        value = self(x)
        grad = None
        if value.requires_grad:
            (grad,) = torch.autograd.grad(value, x, allow_unused=True)
        if grad is None:
            return float(value.detach()), np.zeros(self.layout.size)
        return float(value.detach()), grad.detach().numpy()

    def he(self, x: Any = None) -> np.ndarray:
        """Hessian of the objective with respect to the free vector."""
        x = self.as_vector(x).detach()
        if self.layout.size == 0:
            return np.zeros((0, 0))
        hessian = torch.autograd.functional.hessian(self, x)
        return hessian.detach().numpy()

    def report(self, x: Any = None) -> Dict[str, torch.Tensor]:
        """Named parameter values at ``x``, detached from the graph."""
        values = self.layout.unflatten(self.as_vector(x).detach())
        return {name: value.detach().clone() for name, value in values.items()}
