# src/llmrelay/routing/model_router.py
"""
Model Router for fitness-based model selection.

Ranks catalog entries against a request's TaskRequirements and produces a
primary choice plus an ordered fallback chain. The router holds no state of
its own; it reads model health from the HealthMonitor and affordability from
the CostManager on every call.

Fitness is a weighted composite:

    fitness = 0.40 * capability + 0.15 * context + 0.25 * cost + 0.20 * health

    capability  weighted average over the requested capability dimensions
                (0.5 when none are requested)
    context     1.0..1.2 when the model's window covers the request,
                decaying towards 0.0 as the shortfall grows
    cost        0.0 when today's budget cannot absorb the estimate, a
                penalty when the task's own budget is exceeded, otherwise
                1 - normalized price against a $100/M ceiling
    health      HealthMonitor.health_score()

Usage:
    router = ModelRouter(health_monitor, cost_manager)

    primary = router.route(TaskRequirements(requires_reasoning=True), catalog.all())
    fallbacks = router.fallback_chain(primary, catalog.all())
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from ..models import ModelDescriptor, TaskRequirements
from ..observability.cost_manager import CostManager
from ..observability.health import HealthMonitor

logger = logging.getLogger(__name__)


# =============================================================================
# Scoring Constants
# =============================================================================

CAPABILITY_WEIGHT = 0.40
CONTEXT_WEIGHT = 0.15
COST_WEIGHT = 0.25
HEALTH_WEIGHT = 0.20

# Relative weight of each capability dimension when it is requested.
CAPABILITY_DIMENSION_WEIGHTS: dict[str, float] = {
    "reasoning": 40.0,
    "creativity": 30.0,
    "speed": 20.0,
    "tool_use": 25.0,
    "multimodal": 20.0,
    "math": 15.0,
    "multilingual": 10.0,
}

NEUTRAL_CAPABILITY_SCORE = 0.5
MAX_CONTEXT_BONUS = 0.2
OUTPUT_TOKEN_RATIO = 4  # estimated output = input // 4
MAX_COST_PER_MILLION = 100.0
MAX_BUDGET_OVERAGE_RATIO = 2.0


# =============================================================================
# Data Models
# =============================================================================


@dataclass
class FitnessBreakdown:
    """Per-component scores behind a fitness total."""

    capability_score: float
    context_score: float
    cost_score: float
    health_score: float


@dataclass
class ModelFitness:
    """Fitness of one model for one task. Produced per routing call."""

    model: ModelDescriptor
    score: float
    breakdown: FitnessBreakdown


# =============================================================================
# Model Router Implementation
# =============================================================================


class ModelRouter:
    """
    Selects the best-fit model for a task and orders fallbacks.

    Args:
        health_monitor: Source of availability and health scores.
        cost_manager: Source of budget affordability.
    """

    def __init__(self, health_monitor: HealthMonitor, cost_manager: CostManager) -> None:
        self.health_monitor = health_monitor
        self.cost_manager = cost_manager

    def route(
        self,
        task: TaskRequirements,
        models: Iterable[ModelDescriptor],
    ) -> ModelDescriptor | None:
        """
        Select the highest-fitness available model.

        Returns None only when ``models`` is empty. When no model passes the
        health filter the first entry of ``models`` is returned unfiltered, so
        callers still get a candidate to try.
        """
        models = list(models)
        if not models:
            logger.warning("No models available for routing")
            return None

        healthy = self.health_monitor.filter_available(models)
        if not healthy:
            logger.warning(
                f"No healthy models available, falling back to first model: {models[0].id}"
            )
            return models[0]

        ranked = self.rank(task, healthy)
        best = ranked[0]
        logger.debug(f"Selected model: {best.model.id} with fitness score: {best.score:.2f}")
        logger.debug(
            f"Fitness breakdown: capability={best.breakdown.capability_score:.2f}, "
            f"context={best.breakdown.context_score:.2f}, "
            f"cost={best.breakdown.cost_score:.2f}, "
            f"health={best.breakdown.health_score:.2f}"
        )
        return best.model

    def rank(
        self,
        task: TaskRequirements,
        models: Iterable[ModelDescriptor],
    ) -> list[ModelFitness]:
        """Score ``models`` and sort by descending fitness; ties keep input order."""
        scored = [self.fitness(model, task) for model in models]
        scored.sort(key=lambda f: f.score, reverse=True)
        return scored

    def fitness(self, model: ModelDescriptor, task: TaskRequirements) -> ModelFitness:
        """Compute the weighted fitness of ``model`` for ``task``."""
        capability_score = self.capability_score(model, task)
        context_score = self.context_score(model, task)
        cost_score = self.cost_score(model, task)
        health_score = self.health_monitor.health_score(model.id)

        total = (
            capability_score * CAPABILITY_WEIGHT
            + context_score * CONTEXT_WEIGHT
            + cost_score * COST_WEIGHT
            + health_score * HEALTH_WEIGHT
        )
        return ModelFitness(
            model=model,
            score=total,
            breakdown=FitnessBreakdown(
                capability_score=capability_score,
                context_score=context_score,
                cost_score=cost_score,
                health_score=health_score,
            ),
        )

    # -------------------------------------------------------------------------
    # Component scores
    # -------------------------------------------------------------------------

    @staticmethod
    def capability_score(model: ModelDescriptor, task: TaskRequirements) -> float:
        """Weighted average over the capability dimensions the task requests."""
        score = 0.0
        weight_sum = 0.0
        for dimension, weight in CAPABILITY_DIMENSION_WEIGHTS.items():
            if getattr(task, f"requires_{dimension}"):
                score += getattr(model.capabilities, dimension) * weight
                weight_sum += weight

        if weight_sum == 0.0:
            return NEUTRAL_CAPABILITY_SCORE
        return score / weight_sum

    @staticmethod
    def context_score(model: ModelDescriptor, task: TaskRequirements) -> float:
        """Bonus of up to 20% for spare context, linear penalty for a shortfall."""
        needed = task.context_length
        if model.context_length >= needed:
            excess_ratio = min((model.context_length - needed) / needed, 1.0)
            return 1.0 + excess_ratio * MAX_CONTEXT_BONUS

        shortfall_ratio = min((needed - model.context_length) / needed, 1.0)
        return max(0.0, 1.0 - shortfall_ratio)

    def cost_score(self, model: ModelDescriptor, task: TaskRequirements) -> float:
        """Cheaper is better; unaffordable is 0; over the task budget is penalized."""
        input_tokens = task.context_length
        output_tokens = input_tokens // OUTPUT_TOKEN_RATIO
        estimated_cost = model.estimate_cost(input_tokens, output_tokens)

        if not self.cost_manager.can_afford_model(model, input_tokens, output_tokens):
            return 0.0

        if task.max_budget is not None and estimated_cost > task.max_budget:
            overage_ratio = min(estimated_cost / task.max_budget, MAX_BUDGET_OVERAGE_RATIO)
            return max(0.0, 1.0 / overage_ratio)

        normalized_input = model.pricing.input_per_million / MAX_COST_PER_MILLION
        normalized_output = model.pricing.output_per_million / MAX_COST_PER_MILLION
        return 1.0 - min((normalized_input + normalized_output) / 2.0, 1.0)

    # -------------------------------------------------------------------------
    # Ordering
    # -------------------------------------------------------------------------

    def _tier_then_health(self, models: list[ModelDescriptor]) -> list[ModelDescriptor]:
        """Sort by ascending priority tier, then descending health score."""
        return sorted(
            models,
            key=lambda m: (m.priority_tier, -self.health_monitor.health_score(m.id)),
        )

    def fallback_chain(
        self,
        primary: ModelDescriptor,
        all_models: Iterable[ModelDescriptor],
    ) -> list[ModelDescriptor]:
        """Available models other than ``primary``, best tier first."""
        available = [
            m for m in self.health_monitor.filter_available(all_models)
            if m.id != primary.id
        ]
        return self._tier_then_health(available)

    def recommended(
        self,
        task_type: str,
        all_models: Iterable[ModelDescriptor],
    ) -> list[ModelDescriptor]:
        """Available models whose use cases mention ``task_type`` (case-insensitive)."""
        needle = task_type.lower()
        matching = [
            m for m in self.health_monitor.filter_available(all_models)
            if any(needle in use_case.lower() for use_case in m.use_cases)
        ]
        return self._tier_then_health(matching)


__all__ = [
    "CAPABILITY_DIMENSION_WEIGHTS",
    "FitnessBreakdown",
    "ModelFitness",
    "ModelRouter",
]
