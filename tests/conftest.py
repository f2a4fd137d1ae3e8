# tests/conftest.py
"""
Shared fixtures for LLMRelay tests.

Provides:
- FakeClock: a settable UTC clock injected into HealthMonitor and CostManager
- ScriptedTransport: a BaseTransport whose per-model outcomes are scripted
- Small catalogs of hand-built descriptors
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Dict, List, Optional, Tuple, Union

import pytest

from llmrelay.catalog import ModelCatalog
from llmrelay.models import (
    ChatMessage,
    ModelCapabilities,
    ModelDescriptor,
    ModelPricing,
    TransportResponse,
)
from llmrelay.providers.base import BaseTransport

Outcome = Union[TransportResponse, Dict[str, object], str, BaseException]


# =============================================================================
# CLOCK
# =============================================================================


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.now = start or datetime(2026, 3, 10, 12, 0, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# =============================================================================
# TRANSPORT
# =============================================================================


class ScriptedTransport(BaseTransport):
    """
    Transport returning scripted outcomes per model id.

    Each model id maps to a list of outcomes consumed in order; the last one
    repeats. Exceptions in the script are raised. Unscripted models succeed.
    """

    def __init__(self, script: Optional[Dict[str, List[Outcome]]] = None) -> None:
        self.script: Dict[str, List[Outcome]] = script or {}
        self.calls: List[Tuple[str, List[ChatMessage], Optional[float]]] = []

    def get_name(self) -> str:
        return "scripted"

    async def send(
        self,
        model_id: str,
        messages: List[ChatMessage],
        temperature: Optional[float] = None,
    ) -> TransportResponse:
        self.calls.append((model_id, list(messages), temperature))
        outcomes = self.script.get(model_id)
        if not outcomes:
            return TransportResponse(
                content=f"reply from {model_id}", input_tokens=1000, output_tokens=500
            )
        outcome = outcomes.pop(0) if len(outcomes) > 1 else outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    @property
    def called_models(self) -> List[str]:
        return [model_id for model_id, _, _ in self.calls]


@pytest.fixture
def transport() -> ScriptedTransport:
    return ScriptedTransport()


# =============================================================================
# CATALOGS
# =============================================================================


def make_model(
    model_id: str,
    tier: int = 3,
    context_length: int = 32_000,
    input_price: float = 1.0,
    output_price: float = 2.0,
    use_cases: Optional[List[str]] = None,
    available: bool = True,
    **capabilities: float,
) -> ModelDescriptor:
    """Build a descriptor with sensible defaults for tests."""
    return ModelDescriptor(
        id=model_id,
        name=model_id.upper(),
        context_length=context_length,
        capabilities=ModelCapabilities(**capabilities),
        pricing=ModelPricing(input_per_million=input_price, output_per_million=output_price),
        use_cases=use_cases or [],
        priority_tier=tier,
        available=available,
    )


@pytest.fixture
def model_factory():
    return make_model


@pytest.fixture
def three_models() -> List[ModelDescriptor]:
    """Three otherwise identical models on tiers 1, 2 and 3."""
    return [
        make_model("m1", tier=1),
        make_model("m2", tier=2),
        make_model("m3", tier=3),
    ]


@pytest.fixture
def three_model_catalog(three_models) -> ModelCatalog:
    return ModelCatalog(three_models)
