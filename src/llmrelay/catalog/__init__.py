# src/llmrelay/catalog/__init__.py
"""
Model catalog for LLMRelay.

The catalog is pure data: an ordered, immutable list of model descriptors
loaded once and injected wherever models are ranked or looked up.
"""

from .defaults import DEFAULT_MODELS
from .registry import ModelCatalog, default_catalog

__all__ = [
    "DEFAULT_MODELS",
    "ModelCatalog",
    "default_catalog",
]
