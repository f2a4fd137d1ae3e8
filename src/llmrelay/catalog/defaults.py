# src/llmrelay/catalog/defaults.py
"""
Default model catalog.

Ten OpenRouter models spanning priority tiers 1-5. Prices are USD per
million tokens; capability scores are relative judgements in [0, 1].
"""

from __future__ import annotations

from ..models import ModelCapabilities, ModelDescriptor, ModelPricing

# =============================================================================
# Default Model Registry
# =============================================================================

DEFAULT_MODELS: list[ModelDescriptor] = [
    # Tier 1 - strongest reasoning
    ModelDescriptor(
        id="anthropic/claude-3-opus",
        name="Claude 3 Opus",
        context_length=200_000,
        capabilities=ModelCapabilities(
            reasoning=1.0,
            creativity=0.95,
            speed=0.4,
            tool_use=0.9,
            multimodal=0.8,
            math=0.95,
            multilingual=0.85,
        ),
        pricing=ModelPricing(input_per_million=15.0, output_per_million=75.0),
        use_cases=["Complex reasoning", "Strategic planning", "Core reasoning"],
        priority_tier=1,
    ),
    ModelDescriptor(
        id="openai/gpt-4-turbo",
        name="GPT-4 Turbo",
        context_length=128_000,
        capabilities=ModelCapabilities(
            reasoning=0.95,
            creativity=0.95,
            speed=0.6,
            tool_use=0.95,
            multimodal=0.9,
            math=0.9,
            multilingual=0.8,
        ),
        pricing=ModelPricing(input_per_million=10.0, output_per_million=30.0),
        use_cases=["General intelligence", "Creative tasks", "Multi-domain knowledge"],
        priority_tier=1,
    ),
    # Tier 2 - cost-effective advanced reasoning, massive context
    ModelDescriptor(
        id="anthropic/claude-3-sonnet",
        name="Claude 3 Sonnet",
        context_length=200_000,
        capabilities=ModelCapabilities(
            reasoning=0.85,
            creativity=0.85,
            speed=0.7,
            tool_use=0.85,
            multimodal=0.8,
            math=0.85,
            multilingual=0.85,
        ),
        pricing=ModelPricing(input_per_million=3.0, output_per_million=15.0),
        use_cases=["Cost-effective advanced reasoning", "Operational intelligence", "Command network"],
        priority_tier=2,
    ),
    ModelDescriptor(
        id="google/gemini-pro-1.5",
        name="Gemini Pro 1.5",
        context_length=1_000_000,
        capabilities=ModelCapabilities(
            reasoning=0.9,
            creativity=0.85,
            speed=0.5,
            tool_use=0.8,
            multimodal=0.9,
            math=0.9,
            multilingual=0.9,
        ),
        pricing=ModelPricing(input_per_million=1.25, output_per_million=5.0),
        use_cases=["Massive context", "Multi-modal reasoning", "Massive memory integration"],
        priority_tier=2,
    ),
    # Tier 3 - vision, low latency
    ModelDescriptor(
        id="openai/gpt-4-vision-preview",
        name="GPT-4 Vision",
        context_length=128_000,
        capabilities=ModelCapabilities(
            reasoning=0.9,
            creativity=0.9,
            speed=0.5,
            tool_use=0.85,
            multimodal=1.0,
            math=0.85,
            multilingual=0.75,
        ),
        pricing=ModelPricing(input_per_million=10.0, output_per_million=30.0),
        use_cases=["Multi-modal understanding", "Visual reasoning", "Embodiment"],
        priority_tier=3,
    ),
    ModelDescriptor(
        id="anthropic/claude-3-haiku",
        name="Claude 3 Haiku",
        context_length=200_000,
        capabilities=ModelCapabilities(
            reasoning=0.7,
            creativity=0.7,
            speed=1.0,
            tool_use=0.7,
            multimodal=0.7,
            math=0.7,
            multilingual=0.75,
        ),
        pricing=ModelPricing(input_per_million=0.25, output_per_million=1.25),
        use_cases=["Real-time processing", "Low-latency responses", "Operational tasks", "Voice processing"],
        priority_tier=3,
    ),
    # Tier 4 - open-weight and tool specialists
    ModelDescriptor(
        id="mistralai/mixtral-8x22b",
        name="Mixtral 8x22B",
        context_length=64_000,
        capabilities=ModelCapabilities(
            reasoning=0.8,
            creativity=0.8,
            speed=0.6,
            tool_use=0.75,
            multimodal=0.0,
            math=0.8,
            multilingual=0.8,
        ),
        pricing=ModelPricing(input_per_million=2.0, output_per_million=6.0),
        use_cases=["Open-weight alternative", "Cost-effective scale", "Experimental architectures"],
        priority_tier=4,
    ),
    ModelDescriptor(
        id="cohere/command-r-plus",
        name="Command R+",
        context_length=128_000,
        capabilities=ModelCapabilities(
            reasoning=0.75,
            creativity=0.7,
            speed=0.7,
            tool_use=1.0,
            multimodal=0.0,
            math=0.7,
            multilingual=0.8,
        ),
        pricing=ModelPricing(input_per_million=3.0, output_per_million=15.0),
        use_cases=["Tool use", "API calling", "Operational automation", "System automation"],
        priority_tier=4,
    ),
    # Tier 5 - open-source foundations
    ModelDescriptor(
        id="meta-llama/llama-3-70b-instruct",
        name="Llama 3 70B",
        context_length=8_000,
        capabilities=ModelCapabilities(
            reasoning=0.75,
            creativity=0.75,
            speed=0.7,
            tool_use=0.7,
            multimodal=0.0,
            math=0.75,
            multilingual=0.7,
        ),
        pricing=ModelPricing(input_per_million=0.9, output_per_million=0.9),
        use_cases=["Open-source foundation", "Customizable", "Cost-effective", "Experimental features"],
        priority_tier=5,
    ),
    ModelDescriptor(
        id="qwen/qwen-2-72b-instruct",
        name="Qwen 2 72B",
        context_length=32_000,
        capabilities=ModelCapabilities(
            reasoning=0.8,
            creativity=0.75,
            speed=0.7,
            tool_use=0.75,
            multimodal=0.0,
            math=0.9,
            multilingual=0.95,
        ),
        pricing=ModelPricing(input_per_million=1.5, output_per_million=1.5),
        use_cases=["Multilingual capabilities", "Mathematical reasoning", "Analytical tasks", "International operations"],
        priority_tier=5,
    ),
]
