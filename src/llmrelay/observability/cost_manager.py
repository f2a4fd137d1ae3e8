# src/llmrelay/observability/cost_manager.py
"""
Cost Manager for budget-aware model routing.

This module tracks:
- Spend for the current UTC day, in total and per model
- Request counts for the current day
- A bounded history of previous days (at most 30 entries)

The daily budget is derived from a single monthly figure
(``monthly_budget / 30``) and affordability checks allow a 10% overage
buffer on top of it. Checks are advisory: two concurrent requests may both
pass can_afford() and both spend, so the buffer bounds transient overshoot
rather than preventing it.

Day rollover is lazy. Every accessor first compares the current UTC day
with the tracked one; when the day has advanced, the finished day is
archived into the history and the daily counters start again from zero.

State lives in memory only and is lost on restart.

Usage:
    manager = CostManager(monthly_budget=300.0)

    if manager.can_afford_model(model, input_tokens=4000, output_tokens=1000):
        ...
    manager.record_cost(model.id, 3812, 655, model.pricing)

    for warning in manager.budget_warnings():
        print(warning.level.value, warning.message)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field

from ..models import TOKENS_PER_MILLION, ModelDescriptor, ModelPricing

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

DAYS_PER_MONTH = 30
BUDGET_OVERAGE_BUFFER = 1.1
MAX_HISTORY_DAYS = 30

DAILY_CRITICAL_PERCENT = 90.0
DAILY_WARNING_PERCENT = 75.0
MONTHLY_CRITICAL_PERCENT = 100.0
MONTHLY_WARNING_PERCENT = 90.0

DEFAULT_MONTHLY_BUDGET = 1000.0


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _day_start(moment: datetime) -> datetime:
    """Midnight UTC of the day containing ``moment``."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    moment = moment.astimezone(UTC)
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


# =============================================================================
# DATA MODELS
# =============================================================================


class DailyCost(BaseModel):
    """Archived spend for one finished UTC day.

    Attributes:
        date: Midnight UTC of the archived day.
        total_spend: Total USD spent that day.
        request_count: Number of recorded requests.
        model_breakdown: USD spent per model id.
    """

    date: datetime
    total_spend: float = Field(default=0.0, ge=0.0)
    request_count: int = Field(default=0, ge=0)
    model_breakdown: dict[str, float] = Field(default_factory=dict)


class CostStatistics(BaseModel):
    """Snapshot of current spend against the budget."""

    daily_spend: float
    daily_budget: float
    remaining_daily: float
    monthly_budget: float
    projected_monthly: float
    monthly_remaining: float
    model_breakdown: dict[str, float] = Field(default_factory=dict)


class WarningLevel(str, Enum):
    """Severity of a budget warning."""

    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class BudgetWarning(BaseModel):
    """Advisory signal that spend is approaching or exceeding the budget.

    Warnings are returned to the caller and logged; they never block routing.
    """

    level: WarningLevel
    message: str


# =============================================================================
# COST MANAGER
# =============================================================================


class CostManager:
    """Track daily LLM spend against a monthly budget.

    Args:
        monthly_budget: Monthly budget in USD.
        catalog_lookup: Resolves model ids to descriptors; used by
            cost_effective_alternative(). Typically ``ModelCatalog.by_id``.
        clock: Returns the current UTC time; injectable for tests.
    """

    def __init__(
        self,
        monthly_budget: float = DEFAULT_MONTHLY_BUDGET,
        catalog_lookup: Callable[[str], ModelDescriptor | None] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if monthly_budget < 0:
            raise ValueError(f"monthly_budget must be non-negative, got {monthly_budget}")

        self._monthly_budget = monthly_budget
        self._catalog_lookup = catalog_lookup
        self._clock = clock or _utcnow
        self._lock = threading.RLock()

        self._current_date = _day_start(self._clock())
        self._current_daily_spend = 0.0
        self._current_request_count = 0
        self._model_costs: dict[str, float] = {}
        self._daily_history: list[DailyCost] = []

    # -------------------------------------------------------------------------
    # Budget figures
    # -------------------------------------------------------------------------

    @property
    def monthly_budget(self) -> float:
        return self._monthly_budget

    def daily_budget(self) -> float:
        """Daily budget in USD (monthly budget spread over 30 days)."""
        return self._monthly_budget / DAYS_PER_MONTH

    def daily_spend(self) -> float:
        """USD spent so far in the current UTC day."""
        with self._lock:
            self._rollover_if_needed()
            return self._current_daily_spend

    def remaining_daily_budget(self) -> float:
        """Unspent part of today's budget, never negative."""
        return max(0.0, self.daily_budget() - self.daily_spend())

    def model_breakdown(self) -> dict[str, float]:
        """Today's spend per model id."""
        with self._lock:
            self._rollover_if_needed()
            return dict(self._model_costs)

    # -------------------------------------------------------------------------
    # Affordability
    # -------------------------------------------------------------------------

    def can_afford(self, cost: float) -> bool:
        """Whether ``cost`` fits in today's budget plus the overage buffer."""
        with self._lock:
            self._rollover_if_needed()
            projected = self._current_daily_spend + cost
        return projected <= self.daily_budget() * BUDGET_OVERAGE_BUFFER

    def can_afford_model(
        self,
        model: ModelDescriptor,
        estimated_input_tokens: int,
        estimated_output_tokens: int,
    ) -> bool:
        """Estimate a request's cost from the model's pricing and check it."""
        estimated_cost = model.estimate_cost(estimated_input_tokens, estimated_output_tokens)
        return self.can_afford(estimated_cost)

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    def record_cost(
        self,
        model_id: str,
        input_tokens: int,
        output_tokens: int,
        pricing: ModelPricing | None,
    ) -> float:
        """Record the cost of a completed request.

        Returns:
            The USD amount recorded (0.0 when the record was rejected).
        """
        if not model_id or pricing is None:
            logger.warning(f"Ignoring cost record with missing model id or pricing: {model_id!r}")
            return 0.0
        if input_tokens < 0 or output_tokens < 0:
            logger.warning(
                f"Ignoring cost record for {model_id} with negative token counts "
                f"({input_tokens} input, {output_tokens} output)"
            )
            return 0.0

        input_cost = (input_tokens / TOKENS_PER_MILLION) * pricing.input_per_million
        output_cost = (output_tokens / TOKENS_PER_MILLION) * pricing.output_per_million
        total_cost = input_cost + output_cost

        with self._lock:
            self._rollover_if_needed()
            self._current_daily_spend += total_cost
            self._current_request_count += 1
            self._model_costs[model_id] = self._model_costs.get(model_id, 0.0) + total_cost

        logger.debug(
            f"Recorded cost: ${total_cost:.4f} for model {model_id} "
            f"({input_tokens} input + {output_tokens} output tokens)"
        )
        return total_cost

    # -------------------------------------------------------------------------
    # Rollover and history
    # -------------------------------------------------------------------------

    def _rollover_if_needed(self) -> None:
        """Archive the finished day and reset counters. Caller holds the lock."""
        today = _day_start(self._clock())
        if today <= self._current_date:
            return

        self._daily_history.append(
            DailyCost(
                date=self._current_date,
                total_spend=self._current_daily_spend,
                request_count=self._current_request_count,
                model_breakdown=dict(self._model_costs),
            )
        )
        if len(self._daily_history) > MAX_HISTORY_DAYS:
            del self._daily_history[: len(self._daily_history) - MAX_HISTORY_DAYS]

        logger.info(
            f"Daily cost rollover: archived ${self._current_daily_spend:.4f} "
            f"for {self._current_date.date()}, new day {today.date()}"
        )

        self._current_daily_spend = 0.0
        self._current_request_count = 0
        self._model_costs = {}
        self._current_date = today

    def historical_costs(self, days: int = MAX_HISTORY_DAYS) -> list[DailyCost]:
        """The most recent ``days`` archived days, oldest first."""
        with self._lock:
            self._rollover_if_needed()
            if days <= 0:
                return []
            return [entry.model_copy(deep=True) for entry in self._daily_history[-days:]]

    # -------------------------------------------------------------------------
    # Reporting
    # -------------------------------------------------------------------------

    def statistics(self) -> CostStatistics:
        """Current spend, budget, projection and per-model breakdown."""
        with self._lock:
            self._rollover_if_needed()
            daily_spend = self._current_daily_spend
            breakdown = dict(self._model_costs)

        daily_budget = self.daily_budget()
        projected_monthly = daily_spend * DAYS_PER_MONTH

        return CostStatistics(
            daily_spend=daily_spend,
            daily_budget=daily_budget,
            remaining_daily=max(0.0, daily_budget - daily_spend),
            monthly_budget=self._monthly_budget,
            projected_monthly=projected_monthly,
            monthly_remaining=self._monthly_budget - projected_monthly,
            model_breakdown=breakdown,
        )

    def budget_warnings(self) -> list[BudgetWarning]:
        """Check daily usage and monthly projection against their thresholds."""
        stats = self.statistics()
        warnings: list[BudgetWarning] = []

        if stats.daily_budget > 0:
            daily_percent = stats.daily_spend / stats.daily_budget * 100.0
            if daily_percent >= DAILY_CRITICAL_PERCENT:
                warnings.append(
                    BudgetWarning(
                        level=WarningLevel.CRITICAL,
                        message=(
                            f"Daily budget nearly exhausted: ${stats.daily_spend:.2f}/"
                            f"${stats.daily_budget:.2f} ({daily_percent:.1f}%)"
                        ),
                    )
                )
            elif daily_percent >= DAILY_WARNING_PERCENT:
                warnings.append(
                    BudgetWarning(
                        level=WarningLevel.WARNING,
                        message=(
                            f"Daily budget at {int(daily_percent)}%: "
                            f"${stats.daily_spend:.2f}/${stats.daily_budget:.2f}"
                        ),
                    )
                )

        if stats.monthly_budget > 0:
            monthly_percent = stats.projected_monthly / stats.monthly_budget * 100.0
            if monthly_percent >= MONTHLY_CRITICAL_PERCENT:
                warnings.append(
                    BudgetWarning(
                        level=WarningLevel.CRITICAL,
                        message=(
                            f"Projected monthly spend exceeds budget: "
                            f"${stats.projected_monthly:.2f} (projected) vs "
                            f"${stats.monthly_budget:.2f} (budget)"
                        ),
                    )
                )
            elif monthly_percent >= MONTHLY_WARNING_PERCENT:
                warnings.append(
                    BudgetWarning(
                        level=WarningLevel.WARNING,
                        message=(
                            f"Projected monthly spend at {int(monthly_percent)}%: "
                            f"${stats.projected_monthly:.2f} (projected) vs "
                            f"${stats.monthly_budget:.2f} (budget)"
                        ),
                    )
                )

        for warning in warnings:
            logger.warning(f"Budget {warning.level.value}: {warning.message}")
        return warnings

    def cost_effective_alternative(
        self,
        current: ModelDescriptor,
        hierarchy: Sequence[str],
    ) -> str | None:
        """First model id in ``hierarchy`` with a strictly lower input price.

        Only the input-token price is compared; output price and health are
        not considered. Ids the catalog lookup cannot resolve are skipped.
        """
        if self._catalog_lookup is None:
            logger.warning("cost_effective_alternative called without a catalog lookup")
            return None

        for model_id in hierarchy:
            if model_id == current.id:
                continue
            alternative = self._catalog_lookup(model_id)
            if alternative is None:
                logger.debug(f"Skipping unknown model in hierarchy: {model_id}")
                continue
            if alternative.pricing.input_per_million < current.pricing.input_per_million:
                return model_id
        return None


__all__ = [
    "BudgetWarning",
    "CostManager",
    "CostStatistics",
    "DailyCost",
    "WarningLevel",
    "BUDGET_OVERAGE_BUFFER",
    "DAYS_PER_MONTH",
    "DEFAULT_MONTHLY_BUDGET",
    "MAX_HISTORY_DAYS",
]
