# src/llmrelay/config/relay_config.py
"""
Relay configuration models.

This module defines Pydantic models for the [relay] configuration section
and the loader that merges defaults, a TOML file, dictionaries, environment
variables and runtime overrides into one validated RelayConfig.

The configuration hierarchy:
    RelayConfig (root)
    ├── BudgetConfig   - Monthly budget
    ├── HealthConfig   - Health criteria and state machine thresholds
    ├── LoggingConfig  - Console/file logging
    └── models         - Optional catalog entries (defaults to the packaged catalog)

Usage:
    >>> from llmrelay.config import RelayConfig, load_relay_config
    >>> config = RelayConfig()  # All defaults
    >>> config.budget.monthly_budget
    1000.0

    >>> # Load from TOML
    >>> config = load_relay_config(config_path=Path("relay.toml"))

    >>> # Load with overrides
    >>> config = load_relay_config(overrides={"budget": {"monthly_budget": 30.0}})
"""

from __future__ import annotations

import copy
import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from ..exceptions import ConfigError
from ..observability.cost_manager import DEFAULT_MONTHLY_BUDGET
from ..observability.health import (
    DEFAULT_MAX_RESPONSE_TIME_MS,
    DEFAULT_MIN_SUCCESS_RATE,
    HealthThresholds,
)

logger = logging.getLogger(__name__)

ENV_PREFIX = "LLMRELAY__"
LEGACY_BUDGET_ENV = "LLM_MONTHLY_BUDGET"


# =============================================================================
# SECTION MODELS
# =============================================================================


class BudgetConfig(BaseModel):
    """Budget settings."""

    monthly_budget: float = Field(
        default=DEFAULT_MONTHLY_BUDGET, ge=0.0, description="Monthly budget in USD"
    )


class HealthConfig(BaseModel):
    """
    Health criteria and state machine thresholds.

    ``min_success_rate`` and ``max_response_time_ms`` feed
    HealthMonitor.meets_health_criteria(); ``thresholds`` holds the
    constants of the failure state machine.
    """

    min_success_rate: float = Field(
        default=DEFAULT_MIN_SUCCESS_RATE, ge=0.0, le=1.0, description="Minimum success rate"
    )
    max_response_time_ms: float = Field(
        default=DEFAULT_MAX_RESPONSE_TIME_MS, gt=0.0, description="Maximum average latency (ms)"
    )
    thresholds: HealthThresholds = Field(
        default_factory=HealthThresholds, description="State machine thresholds"
    )


class LoggingConfig(BaseModel):
    """Logging settings consumed by llmrelay.logging_config.configure_logging()."""

    console_enabled: bool = Field(default=False, description="Pass all records to console")
    console_level: str = Field(default="WARNING", description="Console handler level")
    console_format: str = "%(levelname)s - %(message)s"
    file_enabled: bool = Field(default=False, description="Write a rotating log file")
    file_level: str = "DEBUG"
    file_directory: str = "~/.local/share/llmrelay/logs"
    file_name: str = "{app}.log"
    file_format: str = (
        "%(asctime)s [%(levelname)-8s] %(name)-30s - %(message)s (%(filename)s:%(lineno)d)"
    )
    rotation_max_bytes: int = Field(default=10 * 1024 * 1024, ge=0)
    rotation_backup_count: int = Field(default=5, ge=0)
    display_min_level: str = "INFO"
    components: Dict[str, str] = Field(
        default_factory=lambda: {
            "llmrelay": "INFO",
            "httpx": "WARNING",
            "httpcore": "WARNING",
            "asyncio": "WARNING",
        },
        description="Per-logger level overrides",
    )


# =============================================================================
# ROOT CONFIG
# =============================================================================


class RelayConfig(BaseModel):
    """
    Root configuration model, the [relay] section in TOML.

    Usage:
        >>> config = RelayConfig(budget=BudgetConfig(monthly_budget=30.0))
        >>> config.health.min_success_rate
        0.7
    """

    budget: BudgetConfig = Field(default_factory=BudgetConfig)
    health: HealthConfig = Field(default_factory=HealthConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    models: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="Catalog entries; empty means use the packaged default catalog",
    )


# =============================================================================
# CONFIG LOADING
# =============================================================================


def load_relay_config(
    config_path: Optional[Path] = None,
    config_dict: Optional[Dict[str, Any]] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> RelayConfig:
    """
    Load relay configuration.

    Configuration is loaded and merged in order:
        1. Default values (from Pydantic models)
        2. TOML config file, [relay] section (if provided)
        3. Config dictionary, "relay" key (if provided)
        4. Environment variables (LLMRELAY__<SECTION>__<KEY>, LLM_MONTHLY_BUDGET)
        5. Runtime overrides (if provided)

    Raises:
        ConfigError: If the file cannot be parsed or the merged config is invalid.
    """
    merged_config: Dict[str, Any] = {}

    if config_path is not None:
        try:
            with open(Path(config_path).expanduser(), "rb") as f:
                full_config = tomllib.load(f)
        except FileNotFoundError:
            logger.warning(f"Config file not found: {config_path}")
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Failed to parse relay config {config_path}: {e}") from e
        else:
            merged_config = _deep_merge(merged_config, full_config.get("relay", {}))
            logger.debug(f"Loaded relay config from {config_path}")

    if config_dict is not None:
        merged_config = _deep_merge(merged_config, config_dict.get("relay", {}))

    merged_config = _apply_env_overrides(merged_config)

    if overrides is not None:
        merged_config = _deep_merge(merged_config, overrides)

    try:
        return RelayConfig(**merged_config)
    except ValidationError as e:
        raise ConfigError(f"Invalid relay configuration: {e}") from e


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Deep merge two dictionaries, with override taking precedence.

    Values taken from ``override`` are copied, so later in-place updates
    never reach the caller's dictionaries.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _apply_env_overrides(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply environment variable overrides.

    Environment variables follow the pattern:
        LLMRELAY__<SECTION>__<KEY>=value

    Examples:
        LLMRELAY__BUDGET__MONTHLY_BUDGET=250
        LLMRELAY__HEALTH__THRESHOLDS__UNAVAILABLE_FAILURE_THRESHOLD=8

    The bare ``LLM_MONTHLY_BUDGET`` variable is honoured too, with the
    prefixed form taking precedence.
    """
    legacy_budget = os.environ.get(LEGACY_BUDGET_ENV)
    if legacy_budget:
        converted = _convert_env_value(legacy_budget)
        if isinstance(converted, (int, float)) and not isinstance(converted, bool):
            config.setdefault("budget", {})["monthly_budget"] = float(converted)
        else:
            logger.warning(f"Ignoring non-numeric {LEGACY_BUDGET_ENV}={legacy_budget!r}")

    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue

        path_parts = key[len(ENV_PREFIX):].lower().split("__")
        if len(path_parts) < 2:
            continue

        current = config
        for part in path_parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]

        current[path_parts[-1]] = _convert_env_value(value)

    return config


def _convert_env_value(value: str) -> Any:
    """
    Convert environment variable string to bool, int, float or string.
    """
    if value.lower() in ("true", "false"):
        return value.lower() == "true"

    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        pass

    return value


__all__ = [
    "BudgetConfig",
    "HealthConfig",
    "LoggingConfig",
    "RelayConfig",
    "load_relay_config",
]
