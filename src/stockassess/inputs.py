"""
Data and parameter access for model-definition fragments.

A fragment never touches raw dictionaries. It asks a ``ModelInputs`` for the
entries it needs by kind (string, scalar, vector, matrix, parameter), and
every accessor validates what it hands back. This mirrors the way an AD host
declares template inputs, while keeping parameter tensors attached to the
autograd graph so the objective stays differentiable.

Usage
=====
>>> inputs = ModelInputs({"model": "DD", "C_hist": [1.0, 2.0]}, {"log_q": 0.0})
>>> inputs.data_string("model")
'DD'
>>> inputs.data_vector("C_hist").shape
torch.Size([2])
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Mapping, Tuple

import numpy as np
import torch

from .errors import InputTypeError, MissingInputError


def _as_tensor(value: Any, dtype: torch.dtype, name: str) -> torch.Tensor:
    """Convert a numeric entry to a tensor of ``dtype``."""
    if isinstance(value, str):
        raise InputTypeError(f"{name!r} is a string, expected numeric data")
    if isinstance(value, torch.Tensor):
        return value.to(dtype)
    try:
        return torch.as_tensor(np.asarray(value, dtype=np.float64), dtype=dtype)
    except (TypeError, ValueError) as exc:
        raise InputTypeError(f"{name!r} is not numeric: {exc}") from exc


class ModelInputs:
    """
    Read-only view over the host-supplied data and parameters.

    Parameters
    ----------
    data : mapping
        Data entries (strings, numbers, arrays). Must hold the ``"model"``
        identifier when used by ``ObjectiveFunction``.
    parameters : mapping
        Parameter values. Tensors are passed through untouched so gradients
        flow back to the optimizer; anything else is converted.
    dtype : torch.dtype, default=torch.float64
        Floating point type for numeric data and the objective
    """

    def __init__(
        self,
        data: Mapping[str, Any],
        parameters: Mapping[str, Any] | None = None,
        dtype: torch.dtype = torch.float64,
    ):
        self._data = dict(data)
        self._parameters = dict(parameters or {})
        self.dtype = dtype

    def __repr__(self) -> str:
        return (
            f"ModelInputs(data={sorted(self._data)}, "
            f"parameters={sorted(self._parameters)})"
        )

    @property
    def data_names(self) -> Tuple[str, ...]:
        return tuple(self._data)

    @property
    def parameter_names(self) -> Tuple[str, ...]:
        return tuple(self._parameters)

    def zero(self) -> torch.Tensor:
        """Starting value of the objective accumulator."""
        return torch.zeros((), dtype=self.dtype)

    # ------------------------------------------------------------------
    # Data
    # ------------------------------------------------------------------
    def _data_entry(self, name: str) -> Any:
        try:
            return self._data[name]
        except KeyError:
            raise MissingInputError(f"Data entry {name!r} not found") from None

    def data_string(self, name: str) -> str:
        value = self._data_entry(name)
        if not isinstance(value, str):
            raise InputTypeError(
                f"Data entry {name!r} must be a string, got {type(value).__name__}"
            )
        return value

    def data_scalar(self, name: str) -> torch.Tensor:
        tensor = _as_tensor(self._data_entry(name), self.dtype, name)
        if tensor.numel() != 1:
            raise InputTypeError(
                f"Data entry {name!r} must be a scalar, got shape {tuple(tensor.shape)}"
            )
        return tensor.reshape(())

    def data_integer(self, name: str) -> int:
        value = self._data_entry(name)
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            raise InputTypeError(
                f"Data entry {name!r} must be an integer, got {type(value).__name__}"
            )
        return int(value)

    def data_vector(self, name: str) -> torch.Tensor:
        tensor = _as_tensor(self._data_entry(name), self.dtype, name)
        if tensor.ndim != 1:
            raise InputTypeError(
                f"Data entry {name!r} must be 1D, got {tensor.ndim}D"
            )
        return tensor

    def data_matrix(self, name: str) -> torch.Tensor:
        tensor = _as_tensor(self._data_entry(name), self.dtype, name)
        if tensor.ndim != 2:
            raise InputTypeError(
                f"Data entry {name!r} must be 2D, got {tensor.ndim}D"
            )
        return tensor

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------
    def _parameter_entry(self, name: str) -> torch.Tensor:
        try:
            value = self._parameters[name]
        except KeyError:
            raise MissingInputError(f"Parameter {name!r} not found") from None
        return _as_tensor(value, self.dtype, name)

    def parameter(self, name: str) -> torch.Tensor:
        tensor = self._parameter_entry(name)
        if tensor.numel() != 1:
            raise InputTypeError(
                f"Parameter {name!r} must be a scalar, got shape {tuple(tensor.shape)}"
            )
        return tensor.reshape(())

    def parameter_vector(self, name: str) -> torch.Tensor:
        tensor = self._parameter_entry(name)
        if tensor.ndim != 1:
            raise InputTypeError(
                f"Parameter {name!r} must be 1D, got {tensor.ndim}D"
            )
        return tensor


class ParameterLayout:
    """
    Maps named parameters to and from the flat vector an optimizer works on.

    Parameters listed in ``fixed`` keep their initial values and are left out
    of the free vector.

    Parameters
    ----------
    parameters : mapping
        Initial parameter values, in declaration order
    fixed : iterable of str, optional
        Names of parameters to hold constant
    dtype : torch.dtype, default=torch.float64
        Floating point type of the vector
    """

    def __init__(
        self,
        parameters: Mapping[str, Any],
        fixed: Iterable[str] = (),
        dtype: torch.dtype = torch.float64,
    ):
        self.dtype = dtype
        self.initial: "OrderedDict[str, torch.Tensor]" = OrderedDict(
            (name, _as_tensor(value, dtype, name).detach().clone())
            for name, value in parameters.items()
        )

        fixed = tuple(fixed)
        unknown = [name for name in fixed if name not in self.initial]
        if unknown:
            raise MissingInputError(f"Cannot fix unknown parameters: {unknown}")
        self.fixed = fixed

        self.free_names = [name for name in self.initial if name not in fixed]
        self.slices: Dict[str, slice] = {}
        offset = 0
        for name in self.free_names:
            n = self.initial[name].numel()
            self.slices[name] = slice(offset, offset + n)
            offset += n
        self.size = offset

    @property
    def names(self) -> List[str]:
        return list(self.initial)

    def flatten(self, values: Mapping[str, Any]) -> torch.Tensor:
        """Concatenate the free parameters of ``values`` into one vector."""
        if not self.free_names:
            return torch.zeros(0, dtype=self.dtype)
        parts = []
        for name in self.free_names:
            if name not in values:
                raise MissingInputError(f"Parameter {name!r} not found")
            tensor = _as_tensor(values[name], self.dtype, name)
            if tensor.shape != self.initial[name].shape:
                raise InputTypeError(
                    f"Parameter {name!r} has shape {tuple(tensor.shape)}, "
                    f"expected {tuple(self.initial[name].shape)}"
                )
            parts.append(tensor.reshape(-1))
        return torch.cat(parts)

    def unflatten(self, x: torch.Tensor) -> Dict[str, torch.Tensor]:
        """Split a free vector back into named tensors (fixed ones included)."""
        if x.ndim != 1 or x.numel() != self.size:
            raise InputTypeError(
                f"Expected a vector of length {self.size}, got shape {tuple(x.shape)}"
            )
        values: Dict[str, torch.Tensor] = {}
        for name, initial in self.initial.items():
            if name in self.slices:
                values[name] = x[self.slices[name]].reshape(initial.shape)
            else:
                values[name] = initial
        return values

    def initial_vector(self) -> torch.Tensor:
        return self.flatten(self.initial)

    def labels(self) -> List[str]:
        """One label per free element: ``name`` or ``name[i]``."""
        labels = []
        for name in self.free_names:
            n = self.initial[name].numel()
            if self.initial[name].ndim == 0:
                labels.append(name)
            else:
                labels.extend(f"{name}[{i}]" for i in range(n))
        return labels
