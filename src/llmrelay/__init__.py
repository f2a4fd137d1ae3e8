# src/llmrelay/__init__.py
"""
LLMRelay - Multi-model LLM routing with health tracking, cost budgeting and failover.

A request is matched against a catalog of models by fitness (capability,
context, cost and health), sent to the best candidate through an
application-supplied transport, and retried down an ordered fallback chain
until one model succeeds. Every outcome feeds back into per-model health and
daily spend.
"""

from importlib.metadata import PackageNotFoundError, version

from .catalog import DEFAULT_MODELS, ModelCatalog, default_catalog
from .config import RelayConfig, load_relay_config
from .exceptions import (
    AllModelsFailedError,
    ConfigError,
    LLMRelayError,
    NoModelsRegisteredError,
    ProviderError,
)
from .models import (
    ChatMessage,
    LLMResponse,
    ModelCapabilities,
    ModelDescriptor,
    ModelPricing,
    Role,
    TaskRequirements,
    TransportResponse,
)
from .observability import (
    BudgetWarning,
    CostManager,
    CostStatistics,
    DailyCost,
    HealthMonitor,
    HealthStatus,
    HealthSummary,
    ModelHealth,
    WarningLevel,
)
from .orchestrator import RelayOrchestrator, create_orchestrator
from .providers import BaseTransport, CallableTransport
from .routing import ModelRouter

try:
    __version__ = version("llmrelay")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    # Orchestrator
    "RelayOrchestrator",
    "create_orchestrator",
    # Models
    "ChatMessage",
    "LLMResponse",
    "ModelCapabilities",
    "ModelDescriptor",
    "ModelPricing",
    "Role",
    "TaskRequirements",
    "TransportResponse",
    # Catalog
    "DEFAULT_MODELS",
    "ModelCatalog",
    "default_catalog",
    # Routing
    "ModelRouter",
    # Observability
    "BudgetWarning",
    "CostManager",
    "CostStatistics",
    "DailyCost",
    "HealthMonitor",
    "HealthStatus",
    "HealthSummary",
    "ModelHealth",
    "WarningLevel",
    # Providers
    "BaseTransport",
    "CallableTransport",
    # Config
    "RelayConfig",
    "load_relay_config",
    # Exceptions
    "AllModelsFailedError",
    "ConfigError",
    "LLMRelayError",
    "NoModelsRegisteredError",
    "ProviderError",
    "__version__",
]
