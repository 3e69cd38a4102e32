from __future__ import annotations

from typing import Iterable


class StockAssessError(Exception):
    """Base class for all stockassess errors."""


class UnrecognizedModelError(StockAssessError, ValueError):
    """Raised when a model identifier matches none of the registered models."""

    def __init__(self, identifier: object, recognized: Iterable[str] = ()):
        self.identifier = identifier
        self.recognized = tuple(recognized)
        expected = ", ".join(repr(name) for name in self.recognized)
        message = f"No model found: {identifier!r}"
        if expected:
            message += f" (expected one of {expected})"
        super().__init__(message)


class DuplicateModelError(StockAssessError, ValueError):
    """Raised when registering an identifier that is already taken."""


class MissingInputError(StockAssessError, KeyError):
    """Raised when a fragment asks for a data or parameter entry that is absent."""

    def __str__(self) -> str:
        # KeyError would repr() the message
        return str(self.args[0]) if self.args else ""


class InputTypeError(StockAssessError, TypeError):
    """Raised when a data or parameter entry has the wrong kind or shape."""


class NonFiniteObjectiveError(StockAssessError, FloatingPointError):
    """Raised when an objective evaluation yields NaN or Inf."""


class FragmentLoadError(StockAssessError, ImportError):
    """Raised when a fragment path cannot be imported or is not callable."""
