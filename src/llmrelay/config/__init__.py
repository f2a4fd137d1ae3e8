# src/llmrelay/config/__init__.py
"""
Configuration module for the LLMRelay library.

Configuration sources, lowest to highest precedence:
    - Pydantic model defaults
    - A TOML file with a [relay] section
    - A config dictionary
    - Environment variables: prefix LLMRELAY__, nested keys separated by
      double underscores (LLMRELAY__BUDGET__MONTHLY_BUDGET), plus the bare
      LLM_MONTHLY_BUDGET
    - Runtime overrides
"""

from .relay_config import (
    BudgetConfig,
    HealthConfig,
    LoggingConfig,
    RelayConfig,
    load_relay_config,
)

__all__ = [
    "BudgetConfig",
    "HealthConfig",
    "LoggingConfig",
    "RelayConfig",
    "load_relay_config",
]
