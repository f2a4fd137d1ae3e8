# examples/relay_chat.py
"""
Example demonstrating routed chat with automatic failover using LLMRelay.

This script shows how to:
1. Plug a transport into the relay (an in-process fake here, so no API keys
   or network access are needed).
2. Route requests by task requirements and by preferred model.
3. Watch failover when a model keeps failing, and how health tracking takes
   it out of rotation.
4. Read cost statistics, budget warnings and request statistics.

To run this example:
- Install llmrelay (`pip install .` from the project root).
- Run `python examples/relay_chat.py`.
"""

import asyncio
import logging
from typing import List, Optional

from llmrelay import (
    AllModelsFailedError,
    BaseTransport,
    ChatMessage,
    TaskRequirements,
    TransportResponse,
    create_orchestrator,
)
from llmrelay.config import load_relay_config
from llmrelay.logging_config import configure_logging, log_display

logger = logging.getLogger(__name__)


class FlakyTransport(BaseTransport):
    """Answers locally; the models listed in ``broken`` always fail."""

    def __init__(self, broken: Optional[set] = None):
        self.broken = broken or set()

    def get_name(self) -> str:
        return "flaky-demo"

    async def send(
        self,
        model_id: str,
        messages: List[ChatMessage],
        temperature: Optional[float] = None,
    ) -> TransportResponse:
        await asyncio.sleep(0.01)
        if model_id in self.broken:
            raise ConnectionError(f"{model_id} is returning HTTP 503")
        prompt = messages[-1].content
        return TransportResponse(
            content=f"[{model_id}] You said: {prompt}",
            input_tokens=len(prompt.split()) * 4,
            output_tokens=64,
        )


async def main():
    """Runs the relay examples."""
    config = load_relay_config(overrides={"budget": {"monthly_budget": 30.0}})
    configure_logging(app_name="relay_example", config=config.logging)

    transport = FlakyTransport(broken={"anthropic/claude-3-opus"})
    relay = create_orchestrator(transport, config)

    # --- Example 1: Route by requirements ---
    response = await relay.chat(
        [("system", "You are terse."), ("user", "Summarize the incident report.")],
        task=TaskRequirements.core_reasoning(),
    )
    log_display(
        logger, logging.INFO,
        "Reasoning task served by %s after %d attempt(s), $%.5f",
        response.model_used, response.attempts, response.cost,
    )

    # --- Example 2: Preferred model that keeps failing ---
    for i in range(5):
        response = await relay.chat(
            [("user", f"Ping {i + 1}")], preferred_provider="anthropic/claude-3-opus"
        )
        log_display(
            logger, logging.INFO,
            "Ping %d answered by %s (attempts: %d)", i + 1, response.model_used, response.attempts,
        )

    summary = relay.health_summary()
    log_display(
        logger, logging.INFO,
        "Health: %d healthy, %d degraded, %d unavailable",
        summary.healthy, summary.degraded, summary.unavailable,
    )

    # --- Example 3: Every candidate failing ---
    transport.broken = {m.id for m in relay.available_models()}
    try:
        await relay.prompt("Anyone there?")
    except AllModelsFailedError as e:
        log_display(logger, logging.WARNING, "All models failed, tried %d", len(e.attempted))

    # --- Example 4: Spend and statistics ---
    costs = relay.cost_statistics()
    log_display(
        logger, logging.INFO,
        "Spent $%.5f today of $%.2f (projected $%.2f/month)",
        costs.daily_spend, costs.daily_budget, costs.projected_monthly,
    )
    for warning in relay.budget_warnings():
        log_display(logger, logging.WARNING, "%s: %s", warning.level.value, warning.message)
    log_display(logger, logging.INFO, "Request statistics: %s", relay.statistics())

    await transport.close()


if __name__ == "__main__":
    asyncio.run(main())
