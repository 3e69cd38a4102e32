"""
Base class for objective-function model variants.

Each variant owns one model identifier (e.g. "DD") and an optional
*fragment*: a callable that reads what it needs from ``ModelInputs`` and
returns its contribution to the objective (typically a negative
log-likelihood). A variant without a fragment contributes nothing.

Fragment contract
=================
    fragment(inputs: ModelInputs) -> torch.Tensor | float | None

    - Must be a pure function of ``inputs``; no state carried between calls
    - Must return a scalar (any shape with a single element is accepted)
    - Must build the value with torch operations on the parameter tensors,
      otherwise no gradient reaches the optimizer
"""

from __future__ import annotations

from typing import Callable, Optional, Union

import torch

from ..errors import InputTypeError
from ..inputs import ModelInputs

Fragment = Callable[[ModelInputs], Union[torch.Tensor, float, None]]


class ObjectiveModel:
    """
    One named branch of the objective function.

    Subclasses set ``name`` and ``description`` and may override
    ``contribute`` to compute their term directly instead of delegating to
    a fragment.

    Parameters
    ----------
    fragment : callable, optional
        Model-definition fragment supplying the objective contribution
    name : str, optional
        Identifier override (for variants registered without a subclass)
    description : str, optional
        Human readable description
    """

    name: str = ""
    description: str = ""

    def __init__(
        self,
        fragment: Optional[Fragment] = None,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ):
        if name is not None:
            self.name = name
        if description is not None:
            self.description = description
        if not isinstance(self.name, str) or not self.name:
            raise ValueError("ObjectiveModel requires a non-empty string name")
        if fragment is not None and not callable(fragment):
            raise TypeError(f"Fragment for {self.name!r} is not callable")
        self.fragment = fragment

    def __repr__(self) -> str:
        fragment = getattr(self.fragment, "__qualname__", None) or repr(self.fragment)
        return f"{self.__class__.__name__}(name={self.name!r}, fragment={fragment})"

    def with_fragment(self, fragment: Optional[Fragment]) -> "ObjectiveModel":
        """Copy of this variant with ``fragment`` included."""
        return type(self)(
            fragment=fragment, name=self.name, description=self.description
        )

    def contribute(self, inputs: ModelInputs) -> Union[torch.Tensor, float, None]:
        """Raw contribution of this branch (override point)."""
        if self.fragment is None:
            return None
        return self.fragment(inputs)

    def evaluate(self, inputs: ModelInputs) -> Optional[torch.Tensor]:
        """
        Run the branch once and return its scalar contribution.

        Returns
        -------
        value : torch.Tensor or None
            0-dim tensor, or None when the branch contributes nothing
        """
        value = self.contribute(inputs)
        if value is None:
            return None
        if not isinstance(value, torch.Tensor):
            try:
                value = torch.as_tensor(value, dtype=inputs.dtype)
            except (TypeError, ValueError, RuntimeError) as exc:
                raise InputTypeError(
                    f"Model {self.name!r} returned a non-numeric contribution: {value!r}"
                ) from exc
        if value.numel() != 1:
            raise InputTypeError(
                f"Model {self.name!r} must contribute a scalar, "
                f"got shape {tuple(value.shape)}"
            )
        return value.reshape(())
