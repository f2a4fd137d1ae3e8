# src/llmrelay/observability/health.py
"""
Health Monitor for per-model availability and performance tracking.

Each model id gets a ModelHealth record the first time an outcome is
observed for it. Records move through a small circuit-breaker-like state
machine:

    UNKNOWN --success--> HEALTHY
    any     --success--> HEALTHY
    any     --3 consecutive failures--> DEGRADED
    any     --5 consecutive failures--> UNAVAILABLE
    any     --success rate < 50% over >= 10 requests--> DEGRADED

There is no terminal state; a single success always restores HEALTHY.
Degraded models are retried after an exponential backoff of
``2 ** min(consecutive_failures, 5)`` seconds; unavailable models after a
15 minute cooldown. Backoff never delays a request in flight, it only
decides whether a model is eligible for selection.

Usage:
    monitor = HealthMonitor(min_success_rate=0.7, max_response_time_ms=10_000)

    monitor.record_success("anthropic/claude-3-haiku", latency_ms=420.0)
    monitor.record_failure("openai/gpt-4-turbo", "HTTP 503")

    healthy = monitor.filter_available(catalog.all())
    ranked = monitor.sort_by_health(healthy)

Thread safety:
    All record reads and writes happen under one lock, held only for the
    in-memory update. Callers never hold it across a provider call.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from ..models import ModelDescriptor

logger = logging.getLogger(__name__)


# =============================================================================
# Thresholds
# =============================================================================

UNAVAILABLE_FAILURE_THRESHOLD = 5
DEGRADED_FAILURE_THRESHOLD = 3
LOW_SUCCESS_RATE_THRESHOLD = 0.5
LOW_SUCCESS_RATE_MIN_REQUESTS = 10
MAX_BACKOFF_EXPONENT = 5
UNAVAILABLE_COOLDOWN_SECONDS = 15 * 60
LATENCY_EMA_WEIGHT = 0.1
SLOW_RESPONSE_MS = 5000.0
NEUTRAL_HEALTH_SCORE = 0.5
DEGRADED_HEALTH_SCORE = 0.5

DEFAULT_MIN_SUCCESS_RATE = 0.7
DEFAULT_MAX_RESPONSE_TIME_MS = 10_000.0


class HealthThresholds(BaseModel):
    """Tunable constants of the health state machine and score."""

    unavailable_failure_threshold: int = Field(default=UNAVAILABLE_FAILURE_THRESHOLD, ge=1)
    degraded_failure_threshold: int = Field(default=DEGRADED_FAILURE_THRESHOLD, ge=1)
    low_success_rate_threshold: float = Field(default=LOW_SUCCESS_RATE_THRESHOLD, ge=0.0, le=1.0)
    low_success_rate_min_requests: int = Field(default=LOW_SUCCESS_RATE_MIN_REQUESTS, ge=1)
    max_backoff_exponent: int = Field(default=MAX_BACKOFF_EXPONENT, ge=0)
    unavailable_cooldown_seconds: float = Field(default=UNAVAILABLE_COOLDOWN_SECONDS, ge=0.0)
    latency_ema_weight: float = Field(default=LATENCY_EMA_WEIGHT, gt=0.0, le=1.0)
    slow_response_ms: float = Field(default=SLOW_RESPONSE_MS, gt=0.0)

    @model_validator(mode="after")
    def check_failure_threshold_order(self) -> "HealthThresholds":
        """The degraded streak must be shorter than the unavailable streak."""
        if self.degraded_failure_threshold >= self.unavailable_failure_threshold:
            raise ValueError(
                f"degraded_failure_threshold ({self.degraded_failure_threshold}) must be "
                f"less than unavailable_failure_threshold ({self.unavailable_failure_threshold})"
            )
        return self


def _utcnow() -> datetime:
    return datetime.now(UTC)


# =============================================================================
# Data Models
# =============================================================================


class HealthStatus(str, Enum):
    """Health status of a model."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNAVAILABLE = "unavailable"
    UNKNOWN = "unknown"


class ModelHealth(BaseModel):
    """
    Health metrics for a single model.

    Attributes:
        status: Current health status.
        last_success: When the last successful request finished.
        last_failure: When the last failed request finished.
        consecutive_failures: Failures since the last success.
        avg_response_time_ms: Exponential moving average of latency.
        success_rate: successful_requests / total_requests (1.0 before any request).
        total_requests: All recorded outcomes.
        successful_requests: Recorded successes.
        last_check: When any outcome was last recorded.
    """

    status: HealthStatus = HealthStatus.UNKNOWN
    last_success: datetime | None = None
    last_failure: datetime | None = None
    consecutive_failures: int = Field(default=0, ge=0)
    avg_response_time_ms: float = Field(default=0.0, ge=0.0)
    success_rate: float = Field(default=1.0, ge=0.0, le=1.0)
    total_requests: int = Field(default=0, ge=0)
    successful_requests: int = Field(default=0, ge=0)
    last_check: datetime | None = None

    def record_success(
        self,
        response_time_ms: float,
        now: datetime,
        thresholds: HealthThresholds,
    ) -> None:
        """Apply a successful outcome."""
        self.status = HealthStatus.HEALTHY
        self.last_success = now
        self.consecutive_failures = 0
        self.total_requests += 1
        self.successful_requests += 1

        if self.avg_response_time_ms == 0.0:
            self.avg_response_time_ms = response_time_ms
        else:
            weight = thresholds.latency_ema_weight
            self.avg_response_time_ms = (
                self.avg_response_time_ms * (1.0 - weight) + response_time_ms * weight
            )

        self.success_rate = self.successful_requests / self.total_requests
        self.last_check = now

    def record_failure(self, now: datetime, thresholds: HealthThresholds) -> None:
        """Apply a failed outcome and re-evaluate the status."""
        self.last_failure = now
        self.consecutive_failures += 1
        self.total_requests += 1
        self.success_rate = self.successful_requests / self.total_requests

        # Order matters: the hard failure streak wins over the success-rate rule.
        if self.consecutive_failures >= thresholds.unavailable_failure_threshold:
            self.status = HealthStatus.UNAVAILABLE
        elif self.consecutive_failures >= thresholds.degraded_failure_threshold:
            self.status = HealthStatus.DEGRADED
        elif (
            self.success_rate < thresholds.low_success_rate_threshold
            and self.total_requests >= thresholds.low_success_rate_min_requests
        ):
            self.status = HealthStatus.DEGRADED

        self.last_check = now

    def should_retry(self, now: datetime, thresholds: HealthThresholds) -> bool:
        """Whether enough time has passed since the last failure to try again."""
        if self.status in (HealthStatus.HEALTHY, HealthStatus.UNKNOWN):
            return True

        if self.status == HealthStatus.DEGRADED:
            if self.last_failure is None:
                return True
            exponent = min(self.consecutive_failures, thresholds.max_backoff_exponent)
            backoff = timedelta(seconds=2 ** exponent)
            return now - self.last_failure >= backoff

        # UNAVAILABLE
        if self.last_failure is None:
            return False
        cooldown = timedelta(seconds=thresholds.unavailable_cooldown_seconds)
        return now - self.last_failure >= cooldown

    def health_score(self, thresholds: HealthThresholds) -> float:
        """Normalized reliability score in [0.0, 1.0], higher is better."""
        if self.status == HealthStatus.HEALTHY:
            if self.avg_response_time_ms > 0.0:
                response_factor = max(
                    0.0, 1.0 - min(self.avg_response_time_ms / thresholds.slow_response_ms, 1.0)
                )
            else:
                response_factor = 1.0
            score = self.success_rate * 0.7 + response_factor * 0.3
            return max(0.0, min(score, 1.0))
        if self.status == HealthStatus.DEGRADED:
            return DEGRADED_HEALTH_SCORE
        if self.status == HealthStatus.UNAVAILABLE:
            return 0.0
        return NEUTRAL_HEALTH_SCORE


class HealthSummary(BaseModel):
    """Counts of tracked models by health status."""

    total_models: int = 0
    healthy: int = 0
    degraded: int = 0
    unavailable: int = 0
    unknown: int = 0


# =============================================================================
# Health Monitor
# =============================================================================


class HealthMonitor:
    """
    Tracks availability and performance for every model the relay has used.

    Args:
        min_success_rate: Success rate required by meets_health_criteria().
        max_response_time_ms: Latency ceiling used by meets_health_criteria().
        thresholds: State machine constants (defaults preserve the standard behaviour).
        clock: Returns the current UTC time; injectable for tests.
    """

    def __init__(
        self,
        min_success_rate: float = DEFAULT_MIN_SUCCESS_RATE,
        max_response_time_ms: float = DEFAULT_MAX_RESPONSE_TIME_MS,
        thresholds: HealthThresholds | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.min_success_rate = min_success_rate
        self.max_response_time_ms = max_response_time_ms
        self.thresholds = thresholds or HealthThresholds()
        self._clock = clock or _utcnow
        self._health: dict[str, ModelHealth] = {}
        self._lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    def record_success(self, model_id: str, response_time_ms: float) -> None:
        """Record a successful request and its latency."""
        if not model_id:
            logger.warning("Ignoring success recorded without a model id")
            return
        if response_time_ms < 0:
            logger.warning(f"Negative latency {response_time_ms}ms for {model_id}, recording 0")
            response_time_ms = 0.0

        with self._lock:
            health = self._health.setdefault(model_id, ModelHealth())
            previous = health.status
            health.record_success(response_time_ms, self._clock(), self.thresholds)

        if previous not in (HealthStatus.HEALTHY, HealthStatus.UNKNOWN):
            logger.info(f"Model {model_id} recovered from {previous.value} to healthy")
        logger.debug(f"Recorded success for {model_id}: {response_time_ms:.2f}ms")

    def record_failure(self, model_id: str, error: str) -> None:
        """Record a failed request and update the model's status."""
        if not model_id:
            logger.warning(f"Ignoring failure recorded without a model id: {error}")
            return

        with self._lock:
            health = self._health.setdefault(model_id, ModelHealth())
            previous = health.status
            health.record_failure(self._clock(), self.thresholds)
            status = health.status
            failures = health.consecutive_failures
            success_rate = health.success_rate

        logger.warning(f"Recorded failure for {model_id}: {error}")
        if status != previous:
            if status == HealthStatus.UNAVAILABLE:
                logger.error(
                    f"Model {model_id} marked as unavailable after {failures} consecutive failures"
                )
            elif failures >= self.thresholds.degraded_failure_threshold:
                logger.warning(
                    f"Model {model_id} marked as degraded after {failures} consecutive failures"
                )
            else:
                logger.warning(
                    f"Model {model_id} marked as degraded due to low success rate: "
                    f"{success_rate * 100:.1f}%"
                )

    def reset_health(self, model_id: str) -> None:
        """Reset a model to a fresh record (manual intervention or tests)."""
        with self._lock:
            self._health[model_id] = ModelHealth()
        logger.debug(f"Reset health for model: {model_id}")

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_health(self, model_id: str) -> ModelHealth | None:
        """Copy of the health record, or None if the model was never observed."""
        with self._lock:
            health = self._health.get(model_id)
            return health.model_copy() if health is not None else None

    def all_health(self) -> dict[str, ModelHealth]:
        """Snapshot of every tracked record."""
        with self._lock:
            return {model_id: h.model_copy() for model_id, h in self._health.items()}

    def should_retry(self, model_id: str) -> bool:
        """Whether the model's backoff has elapsed; unseen models always qualify."""
        health = self.get_health(model_id)
        if health is None:
            return True
        return health.should_retry(self._clock(), self.thresholds)

    def health_score(self, model_id: str) -> float:
        """Score in [0.0, 1.0]; unseen models get the neutral 0.5."""
        health = self.get_health(model_id)
        if health is None:
            return NEUTRAL_HEALTH_SCORE
        return health.health_score(self.thresholds)

    def is_available(self, model: ModelDescriptor | str) -> bool:
        """
        Whether a model may be selected right now.

        Given a descriptor, the catalog ``available`` flag is checked too; given
        a bare id, only health is considered.
        """
        if isinstance(model, ModelDescriptor):
            if not model.available:
                return False
            model_id = model.id
        else:
            model_id = model

        health = self.get_health(model_id)
        if health is None:
            return True
        return (
            health.status != HealthStatus.UNAVAILABLE
            and health.should_retry(self._clock(), self.thresholds)
        )

    def filter_available(self, models: Iterable[ModelDescriptor]) -> list[ModelDescriptor]:
        """Keep only models that are available, preserving order."""
        return [m for m in models if self.is_available(m)]

    def sort_by_health(self, models: Iterable[ModelDescriptor]) -> list[ModelDescriptor]:
        """Return models ordered by descending health score (stable)."""
        return sorted(models, key=lambda m: self.health_score(m.id), reverse=True)

    def meets_health_criteria(
        self,
        model_id: str,
        min_success_rate: float | None = None,
        max_latency_ms: float | None = None,
    ) -> bool:
        """
        Whether a model is healthy and within the success-rate and latency limits.

        Limits default to the values given at construction. Unseen models are
        assumed to meet the criteria.
        """
        health = self.get_health(model_id)
        if health is None:
            return True

        min_rate = self.min_success_rate if min_success_rate is None else min_success_rate
        max_latency = self.max_response_time_ms if max_latency_ms is None else max_latency_ms
        return (
            health.status == HealthStatus.HEALTHY
            and health.success_rate >= min_rate
            and (health.avg_response_time_ms == 0.0 or health.avg_response_time_ms <= max_latency)
        )

    def health_summary(self) -> HealthSummary:
        """Count tracked models by status."""
        summary = HealthSummary()
        with self._lock:
            summary.total_models = len(self._health)
            for health in self._health.values():
                if health.status == HealthStatus.HEALTHY:
                    summary.healthy += 1
                elif health.status == HealthStatus.DEGRADED:
                    summary.degraded += 1
                elif health.status == HealthStatus.UNAVAILABLE:
                    summary.unavailable += 1
                else:
                    summary.unknown += 1
        return summary


__all__ = [
    "HealthMonitor",
    "HealthStatus",
    "HealthSummary",
    "HealthThresholds",
    "ModelHealth",
    "DEFAULT_MAX_RESPONSE_TIME_MS",
    "DEFAULT_MIN_SUCCESS_RATE",
    "LATENCY_EMA_WEIGHT",
    "UNAVAILABLE_COOLDOWN_SECONDS",
    "UNAVAILABLE_FAILURE_THRESHOLD",
]
