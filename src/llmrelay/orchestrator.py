# src/llmrelay/orchestrator.py
"""
Redundancy orchestrator: the LLMRelay façade.

Resolves a primary model (the caller's preferred model, or the router's
best fit), appends the router's fallback chain, and tries each candidate in
turn through the provider transport. Every outcome is written back into the
HealthMonitor and, for the successful attempt, the CostManager. The first
success is returned; if every candidate fails the call raises
AllModelsFailedError carrying the last ProviderError.

Attempts within one call are strictly sequential with no delay between
them. Backoff only influences which models future calls select. The
transport call runs outside every lock, so one orchestrator instance can
serve many concurrent chat() calls. Cancelling a call aborts the attempt in
flight; outcomes already recorded for earlier attempts stay recorded.

Usage:
    orchestrator = RelayOrchestrator(default_catalog(), transport, monthly_budget=300.0)

    response = await orchestrator.chat(
        [("system", "You are terse."), ("user", "Summarize this log.")],
        task=TaskRequirements(requires_speed=True),
    )
    print(response.model_used, f"${response.cost:.4f}")
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime
from typing import Any

from .catalog.registry import ModelCatalog, default_catalog
from .config.relay_config import RelayConfig, load_relay_config
from .exceptions import AllModelsFailedError, NoModelsRegisteredError, ProviderError
from .models import (
    ChatMessage,
    LLMResponse,
    ModelDescriptor,
    Role,
    TaskRequirements,
    TransportResponse,
)
from .observability.cost_manager import (
    DEFAULT_MONTHLY_BUDGET,
    BudgetWarning,
    CostManager,
    CostStatistics,
)
from .observability.health import HealthMonitor, HealthSummary
from .providers.base import BaseTransport
from .routing.model_router import ModelRouter

logger = logging.getLogger(__name__)

DEFAULT_PROMPT_TEMPERATURE = 0.7
DOCUMENT_SYSTEM_PROMPT = "You are processing a document. Analyze and respond appropriately."

MessageInput = ChatMessage | tuple[str, str]


class RelayOrchestrator:
    """
    Routes chat requests across a model catalog with automatic failover.

    Args:
        catalog: Models to route across, in catalog order.
        transport: Performs the outbound call for one model.
        monthly_budget: Budget for the CostManager created when none is given.
        health_monitor: Shared HealthMonitor (created with defaults if None).
        cost_manager: Shared CostManager (created from ``monthly_budget`` if None).
        router: ModelRouter (built over the monitor and manager if None).

    Raises:
        NoModelsRegisteredError: If the catalog is empty.
    """

    def __init__(
        self,
        catalog: ModelCatalog | Iterable[ModelDescriptor],
        transport: BaseTransport,
        monthly_budget: float = DEFAULT_MONTHLY_BUDGET,
        health_monitor: HealthMonitor | None = None,
        cost_manager: CostManager | None = None,
        router: ModelRouter | None = None,
    ) -> None:
        if not isinstance(catalog, ModelCatalog):
            catalog = ModelCatalog(catalog)
        if len(catalog) == 0:
            raise NoModelsRegisteredError()

        self.catalog = catalog
        self.transport = transport
        self.health_monitor = health_monitor or HealthMonitor()
        self.cost_manager = cost_manager or CostManager(
            monthly_budget=monthly_budget, catalog_lookup=catalog.by_id
        )
        self.router = router or ModelRouter(self.health_monitor, self.cost_manager)

        self._stats_lock = threading.Lock()
        self._stats = {
            "total_requests": 0,
            "successful_primary": 0,
            "successful_fallback": 0,
            "all_failed": 0,
        }

        logger.info(
            f"Initialized relay orchestrator with {len(catalog)} models, "
            f"budget: ${self.cost_manager.monthly_budget}/month"
        )

    @classmethod
    def from_config(
        cls,
        config: RelayConfig,
        transport: BaseTransport,
        clock: Callable[[], datetime] | None = None,
    ) -> RelayOrchestrator:
        """Build an orchestrator and its collaborators from a RelayConfig."""
        catalog = ModelCatalog.from_config(config.models) if config.models else default_catalog()
        health_monitor = HealthMonitor(
            min_success_rate=config.health.min_success_rate,
            max_response_time_ms=config.health.max_response_time_ms,
            thresholds=config.health.thresholds,
            clock=clock,
        )
        cost_manager = CostManager(
            monthly_budget=config.budget.monthly_budget,
            catalog_lookup=catalog.by_id,
            clock=clock,
        )
        return cls(
            catalog,
            transport,
            health_monitor=health_monitor,
            cost_manager=cost_manager,
        )

    # -------------------------------------------------------------------------
    # Chat
    # -------------------------------------------------------------------------

    async def chat(
        self,
        messages: Sequence[MessageInput],
        task: TaskRequirements | None = None,
        temperature: float | None = None,
        preferred_provider: str | None = None,
    ) -> LLMResponse:
        """
        Send a chat completion request with automatic failover.

        Args:
            messages: ChatMessage objects or ``(role, content)`` tuples.
            task: Requirements used for routing (defaults to TaskRequirements()).
            temperature: Optional sampling temperature passed to the transport.
            preferred_provider: Catalog id to try first; ignored if unknown.

        Returns:
            The response of the first candidate that succeeded.

        Raises:
            AllModelsFailedError: If every candidate failed.
        """
        task = task or TaskRequirements()
        chat_messages = [ChatMessage.coerce(m) for m in messages]

        primary = self._resolve_primary(task, preferred_provider)
        candidates = [primary] + self.router.fallback_chain(primary, self.catalog.all())

        logger.info(f"Attempting request with {len(candidates)} models in fallback chain")
        with self._stats_lock:
            self._stats["total_requests"] += 1

        last_error: ProviderError | None = None
        attempted: list[str] = []

        for attempt, model in enumerate(candidates, start=1):
            attempted.append(model.id)
            logger.debug(f"Attempt {attempt}: trying model {model.id}")

            start = time.perf_counter()
            try:
                result = await self.transport.send(model.id, chat_messages, temperature)
                if not isinstance(result, TransportResponse):
                    result = TransportResponse.model_validate(result)
            except Exception as e:
                if isinstance(e, ProviderError):
                    error = e
                else:
                    error = ProviderError(model.id, str(e) or type(e).__name__)
                self.health_monitor.record_failure(model.id, error.detail)
                last_error = error
                logger.warning(f"Model {model.id} failed (attempt {attempt}): {error.detail}")
                continue

            response_time_ms = (time.perf_counter() - start) * 1000.0
            self.health_monitor.record_success(model.id, response_time_ms)
            cost = self.cost_manager.record_cost(
                model.id, result.input_tokens, result.output_tokens, model.pricing
            )

            with self._stats_lock:
                key = "successful_primary" if attempt == 1 else "successful_fallback"
                self._stats[key] += 1

            logger.info(
                f"Success with model {model.id} (attempt {attempt}): "
                f"${cost:.4f}, {response_time_ms:.2f}ms"
            )
            return LLMResponse(
                content=result.content,
                model_used=model.id,
                input_tokens=result.input_tokens,
                output_tokens=result.output_tokens,
                cost=cost,
                response_time_ms=response_time_ms,
                attempts=attempt,
            )

        with self._stats_lock:
            self._stats["all_failed"] += 1
        logger.error(f"All {len(candidates)} models failed")
        raise AllModelsFailedError(last_error=last_error, attempted=attempted) from last_error

    def _resolve_primary(
        self,
        task: TaskRequirements,
        preferred_provider: str | None,
    ) -> ModelDescriptor:
        """Preferred model if it is in the catalog, otherwise the router's choice."""
        if preferred_provider:
            preferred = self.catalog.by_id(preferred_provider)
            if preferred is not None:
                return preferred
            logger.warning(
                f"Preferred provider '{preferred_provider}' not in catalog, routing instead"
            )

        primary = self.router.route(task, self.catalog.all())
        if primary is None:
            raise NoModelsRegisteredError()
        return primary

    async def prompt(self, prompt: str, task: TaskRequirements | None = None) -> LLMResponse:
        """Send a single user prompt."""
        return await self.chat(
            [ChatMessage(role=Role.USER, content=prompt)],
            task=task,
            temperature=DEFAULT_PROMPT_TEMPERATURE,
        )

    async def process_document(
        self,
        document_content: str,
        preferred_provider: str | None = None,
        task: TaskRequirements | None = None,
        temperature: float | None = None,
    ) -> LLMResponse:
        """Process a document, honouring the document's preferred model if it has one."""
        messages = [
            ChatMessage(role=Role.SYSTEM, content=DOCUMENT_SYSTEM_PROMPT),
            ChatMessage(role=Role.USER, content=document_content),
        ]
        return await self.chat(
            messages,
            task=task,
            temperature=temperature,
            preferred_provider=preferred_provider,
        )

    # -------------------------------------------------------------------------
    # Read-only accessors
    # -------------------------------------------------------------------------

    def cost_statistics(self) -> CostStatistics:
        return self.cost_manager.statistics()

    def health_summary(self) -> HealthSummary:
        return self.health_monitor.health_summary()

    def available_models(self) -> list[ModelDescriptor]:
        """All catalog models this orchestrator routes across."""
        return self.catalog.all()

    def healthy_models(self) -> list[ModelDescriptor]:
        """Catalog models currently eligible for selection."""
        return self.health_monitor.filter_available(self.catalog.all())

    def budget_warnings(self) -> list[BudgetWarning]:
        return self.cost_manager.budget_warnings()

    def recommended_model(self, task_type: str) -> ModelDescriptor | None:
        """Best available model whose use cases mention ``task_type``."""
        recommended = self.router.recommended(task_type, self.catalog.all())
        return recommended[0] if recommended else None

    def statistics(self) -> dict[str, Any]:
        """Request outcome counters and derived rates."""
        with self._stats_lock:
            stats = dict(self._stats)
        total = stats["total_requests"]
        return {
            **stats,
            "primary_success_rate": stats["successful_primary"] / total if total > 0 else 0.0,
            "fallback_rate": stats["successful_fallback"] / total if total > 0 else 0.0,
            "failure_rate": stats["all_failed"] / total if total > 0 else 0.0,
        }


def create_orchestrator(
    transport: BaseTransport,
    config: RelayConfig | None = None,
) -> RelayOrchestrator:
    """
    Create an orchestrator from configuration.

    Without an explicit config, configuration is loaded from the environment
    (LLMRELAY__* variables and LLM_MONTHLY_BUDGET, default $1000/month).
    """
    return RelayOrchestrator.from_config(config or load_relay_config(), transport)


__all__ = [
    "RelayOrchestrator",
    "create_orchestrator",
]
