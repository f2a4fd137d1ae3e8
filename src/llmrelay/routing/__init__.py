# src/llmrelay/routing/__init__.py
"""
Routing module for fitness-based model selection.

Provides the ModelRouter, which ranks catalog models against a request's
requirements and orders the fallback chain tried after the primary fails.
"""

from .model_router import (
    CAPABILITY_DIMENSION_WEIGHTS,
    FitnessBreakdown,
    ModelFitness,
    ModelRouter,
)

__all__ = [
    "CAPABILITY_DIMENSION_WEIGHTS",
    "FitnessBreakdown",
    "ModelFitness",
    "ModelRouter",
]
