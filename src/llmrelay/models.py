# src/llmrelay/models.py
"""
Core data models for the LLMRelay library.

This module defines the Pydantic models shared by the catalog, the router,
the health and cost bookkeeping, and the orchestrator: model descriptors
(capabilities, pricing, tier), per-request task requirements, chat messages,
and the responses flowing back from the provider transport.
"""

from enum import Enum
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

TOKENS_PER_MILLION = 1_000_000.0


class Role(str, Enum):
    """
    Enumeration of possible roles in a conversation.
    """
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"

    @classmethod
    def _missing_(cls, value: object): # type: ignore[misc]
        """Handles case-insensitive matching, mapping "agent" to ASSISTANT."""
        if isinstance(value, str):
            lower_value = value.lower()
            if lower_value == "agent":
                return cls.ASSISTANT
            for member in cls:
                if member.value == lower_value:
                    return member
        return None


class ModelCapabilities(BaseModel):
    """
    Capability scores used for task matching, each in the range [0.0, 1.0].

    Attributes:
        reasoning: Strength at multi-step reasoning.
        creativity: Strength at creative generation.
        speed: Latency score, higher means faster.
        tool_use: Function calling and API usage.
        multimodal: Image and other non-text inputs.
        math: Mathematical reasoning.
        multilingual: Non-English languages.
    """
    model_config = ConfigDict(frozen=True)

    reasoning: float = Field(default=0.5, ge=0.0, le=1.0)
    creativity: float = Field(default=0.5, ge=0.0, le=1.0)
    speed: float = Field(default=0.5, ge=0.0, le=1.0)
    tool_use: float = Field(default=0.5, ge=0.0, le=1.0)
    multimodal: float = Field(default=0.0, ge=0.0, le=1.0)
    math: float = Field(default=0.5, ge=0.0, le=1.0)
    multilingual: float = Field(default=0.5, ge=0.0, le=1.0)


class ModelPricing(BaseModel):
    """Pricing for a model in USD per million tokens."""
    model_config = ConfigDict(frozen=True)

    input_per_million: float = Field(ge=0.0, description="USD per million input tokens.")
    output_per_million: float = Field(ge=0.0, description="USD per million output tokens.")

    def estimate_cost(self, input_tokens: int, output_tokens: int) -> float:
        """Returns the USD cost of a request with the given token counts."""
        input_cost = (input_tokens / TOKENS_PER_MILLION) * self.input_per_million
        output_cost = (output_tokens / TOKENS_PER_MILLION) * self.output_per_million
        return input_cost + output_cost


class ModelDescriptor(BaseModel):
    """
    Immutable description of one routable model.

    Attributes:
        id: Unique model identifier understood by the provider transport.
        name: Human-readable name.
        context_length: Maximum context length in tokens.
        capabilities: Capability scores for task matching.
        pricing: Per-million-token pricing.
        use_cases: Free-form tags used by use-case lookups.
        priority_tier: Preference rank, 1 (best) through 10 (worst).
        available: Catalog-level availability flag.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="Unique model identifier.")
    name: str = Field(default="", description="Human-readable model name.")
    context_length: int = Field(ge=0, description="Maximum context length in tokens.")
    capabilities: ModelCapabilities = Field(default_factory=ModelCapabilities)
    pricing: ModelPricing
    use_cases: List[str] = Field(default_factory=list)
    priority_tier: int = Field(default=5, ge=1, le=10)
    available: bool = True

    def estimate_cost(self, input_tokens: int, output_tokens: int) -> float:
        """Estimates the USD cost of a request against this model."""
        return self.pricing.estimate_cost(input_tokens, output_tokens)


class TaskRequirements(BaseModel):
    """
    What a single request needs from the model that serves it.

    Each ``requires_*`` flag selects the matching capability dimension for
    scoring. ``context_length`` is the number of tokens the request needs and
    also drives the router's cost estimate.
    """
    requires_reasoning: bool = False
    requires_creativity: bool = False
    requires_speed: bool = False
    requires_tool_use: bool = False
    requires_multimodal: bool = False
    requires_math: bool = False
    requires_multilingual: bool = False
    context_length: int = Field(default=4_000, gt=0)
    max_budget: Optional[float] = Field(default=None, gt=0.0)
    task_type: str = "general"

    @classmethod
    def core_reasoning(cls) -> "TaskRequirements":
        """Deep reasoning with creative latitude over a medium context."""
        return cls(
            requires_reasoning=True,
            requires_creativity=True,
            context_length=16_000,
            max_budget=0.50,
            task_type="core_reasoning",
        )

    @classmethod
    def command_network(cls) -> "TaskRequirements":
        """Fast tool-driven command execution."""
        return cls(
            requires_reasoning=True,
            requires_speed=True,
            requires_tool_use=True,
            context_length=8_000,
            max_budget=0.20,
            task_type="command_network",
        )

    @classmethod
    def realtime_voice(cls) -> "TaskRequirements":
        """Low-latency conversational turns."""
        return cls(
            requires_speed=True,
            context_length=4_000,
            max_budget=0.05,
            task_type="realtime_voice",
        )

    @classmethod
    def massive_context(cls) -> "TaskRequirements":
        """Reasoning over very large inputs."""
        return cls(
            requires_reasoning=True,
            context_length=500_000,
            max_budget=1.00,
            task_type="massive_context",
        )


class ChatMessage(BaseModel):
    """A single chat message sent to the provider transport."""
    role: Role
    content: str

    model_config = ConfigDict(use_enum_values=True)

    @classmethod
    def coerce(cls, value: Union["ChatMessage", Tuple[str, str]]) -> "ChatMessage":
        """Accepts either a ChatMessage or a ``(role, content)`` tuple."""
        if isinstance(value, ChatMessage):
            return value
        role, content = value
        return cls(role=role, content=content)


class TransportResponse(BaseModel):
    """What the provider transport returns for a successful completion."""
    content: str
    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)


class LLMResponse(BaseModel):
    """
    A completed chat request, with the metadata of the attempt that served it.

    Attributes:
        content: The generated text.
        model_used: Id of the model that produced the content.
        input_tokens: Prompt tokens reported by the transport.
        output_tokens: Completion tokens reported by the transport.
        cost: USD cost recorded for this request.
        response_time_ms: Wall-clock duration of the successful attempt.
        attempts: Number of candidates tried, including the successful one.
    """
    content: str
    model_used: str
    input_tokens: int = 0
    output_tokens: int = 0
    cost: float = 0.0
    response_time_ms: float = 0.0
    attempts: int = 1
