# src/llmrelay/observability/__init__.py
"""
Observability for LLMRelay: model health and spend tracking.

Both trackers keep their state in memory behind a short-lived lock and are
shared by every request passing through one orchestrator.

Modules:
    health: per-model health records, backoff and health scores
    cost_manager: daily spend against a monthly budget, with rollover
"""

from .cost_manager import (
    BudgetWarning,
    CostManager,
    CostStatistics,
    DailyCost,
    WarningLevel,
)
from .health import (
    HealthMonitor,
    HealthStatus,
    HealthSummary,
    HealthThresholds,
    ModelHealth,
)

__all__ = [
    # Health
    "HealthMonitor",
    "HealthStatus",
    "HealthSummary",
    "HealthThresholds",
    "ModelHealth",
    # Cost
    "BudgetWarning",
    "CostManager",
    "CostStatistics",
    "DailyCost",
    "WarningLevel",
]
