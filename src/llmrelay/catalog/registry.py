# src/llmrelay/catalog/registry.py
"""
Model Catalog - immutable, ordered collection of model descriptors.

The catalog is built once at startup and injected into the router and the
orchestrator. It has no mutation API: catalog order is significant (the
router breaks fitness ties by it), so a catalog is replaced, never edited.

Example:
    >>> catalog = ModelCatalog(DEFAULT_MODELS)
    >>> catalog.by_id("anthropic/claude-3-haiku").priority_tier
    3
    >>> [m.id for m in catalog.by_use_case("voice")]
    ['anthropic/claude-3-haiku']
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from pydantic import ValidationError

from ..exceptions import ConfigError
from ..models import ModelDescriptor
from .defaults import DEFAULT_MODELS

logger = logging.getLogger(__name__)


class ModelCatalog:
    """
    Read-only lookup over an ordered list of ModelDescriptor entries.

    Args:
        models: Descriptors in catalog order. Ids must be unique.

    Raises:
        ConfigError: If two descriptors share an id.
    """

    def __init__(self, models: Iterable[ModelDescriptor]) -> None:
        self._models: tuple[ModelDescriptor, ...] = tuple(models)
        self._by_id: dict[str, ModelDescriptor] = {}

        for model in self._models:
            if model.id in self._by_id:
                raise ConfigError(f"Duplicate model id in catalog: '{model.id}'")
            self._by_id[model.id] = model

        logger.debug(f"Model catalog built with {len(self._models)} models")

    @classmethod
    def from_config(cls, entries: Iterable[Mapping[str, Any]]) -> ModelCatalog:
        """
        Build a catalog from plain dictionaries (e.g. a TOML ``[[relay.models]]`` array).

        Raises:
            ConfigError: If an entry fails validation or ids collide.
        """
        models = []
        for index, entry in enumerate(entries):
            try:
                models.append(ModelDescriptor.model_validate(dict(entry)))
            except ValidationError as e:
                raise ConfigError(f"Invalid catalog entry #{index}: {e}") from e
        return cls(models)

    def __len__(self) -> int:
        return len(self._models)

    def __iter__(self) -> Iterator[ModelDescriptor]:
        return iter(self._models)

    def __contains__(self, model_id: object) -> bool:
        return model_id in self._by_id

    def __repr__(self) -> str:
        return f"ModelCatalog(models={len(self._models)})"

    def all(self) -> list[ModelDescriptor]:
        """All descriptors in catalog order."""
        return list(self._models)

    def by_id(self, model_id: str) -> ModelDescriptor | None:
        """Look up a descriptor by id; returns None when not found."""
        return self._by_id.get(model_id)

    def by_tier(self, tier: int) -> list[ModelDescriptor]:
        """Descriptors with the given priority tier, in catalog order."""
        return [m for m in self._models if m.priority_tier == tier]

    def by_use_case(self, use_case: str) -> list[ModelDescriptor]:
        """Descriptors with a use-case tag containing ``use_case`` (case-insensitive)."""
        needle = use_case.lower()
        return [
            m for m in self._models
            if any(needle in tag.lower() for tag in m.use_cases)
        ]

    def available(self) -> list[ModelDescriptor]:
        """Descriptors whose catalog-level ``available`` flag is set."""
        return [m for m in self._models if m.available]


def default_catalog() -> ModelCatalog:
    """Return a catalog of the packaged default models."""
    return ModelCatalog(DEFAULT_MODELS)
