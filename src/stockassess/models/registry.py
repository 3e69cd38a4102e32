"""
Registry resolving a model identifier to its objective-function variant.

Identifiers are matched exactly: no case folding, no whitespace trimming.
"""

from __future__ import annotations

import importlib
import logging
from enum import Enum
from typing import Dict, Iterable, Iterator, Optional, Tuple, Type, Union

from ..errors import DuplicateModelError, FragmentLoadError, UnrecognizedModelError
from .base import Fragment, ObjectiveModel

logger = logging.getLogger(__name__)


class ModelName(str, Enum):
    """Built-in model identifiers."""

    DD = "DD"
    DD_SS = "DD_SS"

    def __str__(self) -> str:
        return self.value


Identifier = Union[str, ModelName]

_BUILTIN_MODELS: Dict[str, Type[ObjectiveModel]] = {}


def builtin_model(cls: Type[ObjectiveModel]) -> Type[ObjectiveModel]:
    """Class decorator: add a variant to every ``default_registry()``."""
    _BUILTIN_MODELS[cls.name] = cls
    return cls


def _key(identifier: object, recognized: Iterable[str]) -> str:
    if isinstance(identifier, ModelName):
        return identifier.value
    if not isinstance(identifier, str):
        raise UnrecognizedModelError(identifier, recognized)
    return identifier


class ModelRegistry:
    """
    Mapping of identifier -> ``ObjectiveModel``.

    Example
    -------
    >>> registry = ModelRegistry()
    >>> _ = registry.register(ObjectiveModel(name="SP"))
    >>> registry.resolve("SP").name
    'SP'
    """

    def __init__(self, models: Iterable[ObjectiveModel] = ()):
        self._models: Dict[str, ObjectiveModel] = {}
        for model in models:
            self.register(model)

    def __contains__(self, identifier: object) -> bool:
        try:
            return _key(identifier, ()) in self._models
        except UnrecognizedModelError:
            return False

    def __iter__(self) -> Iterator[ObjectiveModel]:
        return iter(self._models.values())

    def __len__(self) -> int:
        return len(self._models)

    def __repr__(self) -> str:
        return f"ModelRegistry({list(self._models)})"

    @property
    def identifiers(self) -> Tuple[str, ...]:
        return tuple(self._models)

    def register(self, model: ObjectiveModel, replace: bool = False) -> ObjectiveModel:
        if not isinstance(model, ObjectiveModel):
            raise TypeError(f"Expected an ObjectiveModel, got {type(model).__name__}")
        if model.name in self._models and not replace:
            raise DuplicateModelError(f"Model {model.name!r} is already registered")
        self._models[model.name] = model
        logger.debug("Registered model %s", model.name)
        return model

    def include(self, identifier: Identifier, fragment: Optional[Fragment]) -> ObjectiveModel:
        """Attach ``fragment`` to the registered slot ``identifier``."""
        model = self.resolve(identifier).with_fragment(fragment)
        self._models[model.name] = model
        logger.debug("Included fragment %r into model %s", fragment, model.name)
        return model

    def resolve(self, identifier: Identifier) -> ObjectiveModel:
        key = _key(identifier, self.identifiers)
        try:
            return self._models[key]
        except KeyError:
            raise UnrecognizedModelError(identifier, self.identifiers) from None

    def copy(self) -> "ModelRegistry":
        return ModelRegistry(self._models.values())


def default_registry() -> ModelRegistry:
    """Fresh registry holding the built-in variants with empty fragments."""
    from . import delay_difference  # noqa: F401  (registers built-ins)

    return ModelRegistry(cls() for cls in _BUILTIN_MODELS.values())


_default: Optional[ModelRegistry] = None


def get_default_registry() -> ModelRegistry:
    """Process-wide registry used when callers pass none."""
    global _default
    if _default is None:
        _default = default_registry()
    return _default


def load_fragment(path: str) -> Fragment:
    """
    Import a fragment given as ``"package.module:callable"``.

    Dotted attributes after the colon are followed, so
    ``"pkg.mod:Class.method"`` works too.
    """
    module_name, sep, attr_path = path.partition(":")
    if not sep or not module_name or not attr_path:
        raise FragmentLoadError(
            f"Fragment path {path!r} must look like 'package.module:callable'"
        )
    try:
        obj = importlib.import_module(module_name)
    except ImportError as exc:
        raise FragmentLoadError(f"Cannot import {module_name!r}: {exc}") from exc
    for attr in attr_path.split("."):
        try:
            obj = getattr(obj, attr)
        except AttributeError as exc:
            raise FragmentLoadError(
                f"{module_name!r} has no attribute {attr_path!r}"
            ) from exc
    if not callable(obj):
        raise FragmentLoadError(f"Fragment {path!r} is not callable")
    return obj
