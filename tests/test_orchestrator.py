# tests/test_orchestrator.py
"""
Tests for the relay orchestrator.

Tests cover:
- Primary resolution (preferred provider, routing)
- Sequential failover and health/cost write-back
- AllModelsFailedError when the chain is exhausted
- Cancellation, statistics and read-only accessors
- Construction from configuration
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from llmrelay.catalog import ModelCatalog
from llmrelay.config import RelayConfig, load_relay_config
from llmrelay.exceptions import AllModelsFailedError, NoModelsRegisteredError, ProviderError
from llmrelay.models import ChatMessage, Role, TransportResponse
from llmrelay.observability import CostManager, HealthMonitor, HealthStatus
from llmrelay.orchestrator import RelayOrchestrator, create_orchestrator
from llmrelay.providers import BaseTransport, CallableTransport

MESSAGES = [("user", "hello")]


@pytest.fixture
def health_monitor(clock) -> HealthMonitor:
    return HealthMonitor(clock=clock)


@pytest.fixture
def orchestrator(three_model_catalog, transport, health_monitor, clock) -> RelayOrchestrator:
    return RelayOrchestrator(
        three_model_catalog,
        transport,
        health_monitor=health_monitor,
        cost_manager=CostManager(monthly_budget=300.0, clock=clock),
    )


# =============================================================================
# CONSTRUCTION
# =============================================================================


class TestConstruction:
    def test_empty_catalog_rejected(self, transport) -> None:
        with pytest.raises(NoModelsRegisteredError):
            RelayOrchestrator(ModelCatalog([]), transport)

    def test_accepts_plain_model_list(self, three_models, transport) -> None:
        orchestrator = RelayOrchestrator(three_models, transport, monthly_budget=60.0)
        assert [m.id for m in orchestrator.available_models()] == ["m1", "m2", "m3"]
        assert orchestrator.cost_manager.monthly_budget == 60.0

    def test_from_config_with_models(self, transport) -> None:
        config = RelayConfig(
            budget={"monthly_budget": 90.0},
            health={"min_success_rate": 0.9},
            models=[
                {
                    "id": "local/a",
                    "context_length": 8000,
                    "pricing": {"input_per_million": 0.5, "output_per_million": 1.0},
                }
            ],
        )
        orchestrator = RelayOrchestrator.from_config(config, transport)
        assert [m.id for m in orchestrator.available_models()] == ["local/a"]
        assert orchestrator.cost_manager.monthly_budget == 90.0
        assert orchestrator.health_monitor.min_success_rate == 0.9

    def test_from_config_defaults_to_packaged_catalog(self, transport) -> None:
        orchestrator = RelayOrchestrator.from_config(RelayConfig(), transport)
        assert len(orchestrator.available_models()) == 10

    def test_create_orchestrator_reads_budget_env(self, transport, monkeypatch) -> None:
        monkeypatch.delenv("LLMRELAY__BUDGET__MONTHLY_BUDGET", raising=False)
        monkeypatch.setenv("LLM_MONTHLY_BUDGET", "300")
        orchestrator = create_orchestrator(transport)
        assert orchestrator.cost_manager.monthly_budget == 300.0

    def test_create_orchestrator_with_config(self, transport) -> None:
        config = load_relay_config(overrides={"budget": {"monthly_budget": 45.0}})
        orchestrator = create_orchestrator(transport, config)
        assert orchestrator.cost_manager.monthly_budget == 45.0


# =============================================================================
# CHAT
# =============================================================================


class TestChat:
    """Tests for routing and failover in chat()."""

    @pytest.mark.asyncio
    async def test_primary_success(self, orchestrator, transport) -> None:
        response = await orchestrator.chat(MESSAGES)
        assert response.model_used == "m1"
        assert response.content == "reply from m1"
        assert response.attempts == 1
        assert response.input_tokens == 1000
        assert response.output_tokens == 500
        # m1 costs $1/M input and $2/M output
        assert response.cost == pytest.approx(0.002)
        assert response.response_time_ms >= 0.0
        assert transport.called_models == ["m1"]

    @pytest.mark.asyncio
    async def test_messages_are_coerced(self, orchestrator, transport) -> None:
        await orchestrator.chat([("system", "be brief"), ChatMessage(role=Role.USER, content="hi")])
        _, messages, _ = transport.calls[0]
        assert [m.role for m in messages] == [Role.SYSTEM, Role.USER]
        assert messages[1].content == "hi"

    @pytest.mark.asyncio
    async def test_preferred_provider_goes_first(self, orchestrator, transport) -> None:
        response = await orchestrator.chat(MESSAGES, preferred_provider="m3")
        assert response.model_used == "m3"
        assert transport.called_models == ["m3"]

    @pytest.mark.asyncio
    async def test_unknown_preferred_provider_routes(self, orchestrator, transport) -> None:
        response = await orchestrator.chat(MESSAGES, preferred_provider="nobody/nothing")
        assert response.model_used == "m1"

    @pytest.mark.asyncio
    async def test_temperature_passed_through(self, orchestrator, transport) -> None:
        await orchestrator.chat(MESSAGES, temperature=0.2)
        assert transport.calls[0][2] == 0.2

    @pytest.mark.asyncio
    async def test_failover_records_health_and_cost(
        self, orchestrator, transport, health_monitor
    ) -> None:
        transport.script = {
            "m1": [RuntimeError("HTTP 503")],
            "m2": [TimeoutError("timed out")],
        }
        response = await orchestrator.chat(MESSAGES, preferred_provider="m1")

        assert response.model_used == "m3"
        assert response.attempts == 3
        assert transport.called_models == ["m1", "m2", "m3"]

        assert health_monitor.get_health("m1").consecutive_failures == 1
        assert health_monitor.get_health("m2").consecutive_failures == 1
        m3 = health_monitor.get_health("m3")
        assert m3.status == HealthStatus.HEALTHY
        assert m3.successful_requests == 1

        breakdown = orchestrator.cost_manager.model_breakdown()
        assert list(breakdown) == ["m3"]
        assert orchestrator.cost_statistics().daily_spend == pytest.approx(response.cost)

    @pytest.mark.asyncio
    async def test_all_models_failed(self, orchestrator, transport, health_monitor) -> None:
        transport.script = {
            "m1": [RuntimeError("one")],
            "m2": [RuntimeError("two")],
            "m3": [RuntimeError("three")],
        }
        with pytest.raises(AllModelsFailedError) as exc_info:
            await orchestrator.chat(MESSAGES)

        err = exc_info.value
        assert err.attempted == ["m1", "m2", "m3"]
        assert isinstance(err.last_error, ProviderError)
        assert err.last_error.provider_name == "m3"
        assert err.last_error.detail == "three"
        assert err.__cause__ is err.last_error
        assert orchestrator.cost_manager.daily_spend() == 0.0
        assert health_monitor.health_summary().total_models == 3

    @pytest.mark.asyncio
    async def test_provider_error_kept_as_is(self, orchestrator, transport) -> None:
        upstream_error = ProviderError("upstream", "rate limited")
        transport.script = {m: [upstream_error] for m in ("m1", "m2", "m3")}
        with pytest.raises(AllModelsFailedError) as exc_info:
            await orchestrator.chat(MESSAGES)
        assert exc_info.value.last_error is upstream_error

    @pytest.mark.asyncio
    async def test_unavailable_model_left_out_of_chain(
        self, orchestrator, transport, health_monitor
    ) -> None:
        for _ in range(5):
            health_monitor.record_failure("m1", "down")
        response = await orchestrator.chat(MESSAGES)
        assert response.model_used == "m2"
        assert "m1" not in transport.called_models

    @pytest.mark.asyncio
    async def test_repeated_failures_push_model_out(self, orchestrator, transport) -> None:
        transport.script = {"m1": [RuntimeError("down")]}
        for _ in range(5):
            await orchestrator.chat(MESSAGES, preferred_provider="m1")
        assert orchestrator.health_monitor.is_available("m1") is False

        transport.calls.clear()
        response = await orchestrator.chat(MESSAGES)
        assert response.model_used == "m2"
        assert transport.called_models == ["m2"]

    @pytest.mark.asyncio
    async def test_cancellation_not_recorded(self, orchestrator, transport, health_monitor) -> None:
        transport.script = {"m1": [asyncio.CancelledError()]}
        with pytest.raises(asyncio.CancelledError):
            await orchestrator.chat(MESSAGES)
        assert health_monitor.get_health("m1") is None
        assert transport.called_models == ["m1"]

    @pytest.mark.asyncio
    async def test_mock_transport_failover(self, three_model_catalog) -> None:
        transport = MagicMock(spec=BaseTransport)
        transport.send = AsyncMock(
            side_effect=[
                RuntimeError("connection reset"),
                TransportResponse(content="recovered", input_tokens=20, output_tokens=10),
            ]
        )
        orchestrator = RelayOrchestrator(three_model_catalog, transport)

        response = await orchestrator.chat(MESSAGES, temperature=0.3)

        assert response.content == "recovered"
        assert response.model_used == "m2"
        assert transport.send.await_count == 2
        first_call, second_call = transport.send.await_args_list
        assert first_call.args[0] == "m1"
        assert second_call.args[0] == "m2"
        assert second_call.args[2] == 0.3

    @pytest.mark.asyncio
    async def test_mapping_result_is_validated(self, orchestrator, transport) -> None:
        transport.script = {
            "m1": [{"content": "from a dict", "input_tokens": 40, "output_tokens": 8}],
        }
        response = await orchestrator.chat(MESSAGES)
        assert response.model_used == "m1"
        assert response.content == "from a dict"
        assert response.input_tokens == 40

    @pytest.mark.asyncio
    async def test_malformed_result_fails_over(
        self, orchestrator, transport, health_monitor
    ) -> None:
        transport.script = {
            "m1": [{"input_tokens": 12}],
            "m2": ["not a response"],
        }
        response = await orchestrator.chat(MESSAGES)

        assert response.model_used == "m3"
        assert response.attempts == 3
        for model_id in ("m1", "m2"):
            health = health_monitor.get_health(model_id)
            assert health.successful_requests == 0
            assert health.consecutive_failures == 1
        assert list(orchestrator.cost_manager.model_breakdown()) == ["m3"]

        stats = orchestrator.statistics()
        assert stats["total_requests"] == 1
        assert stats["successful_fallback"] == 1

    @pytest.mark.asyncio
    async def test_callable_transport_dict_result(self, three_model_catalog) -> None:
        async def send(model_id, messages, temperature):
            return {"content": f"ok {model_id}", "input_tokens": 10, "output_tokens": 5}

        orchestrator = RelayOrchestrator(three_model_catalog, CallableTransport(send, name="fn"))
        response = await orchestrator.chat(MESSAGES)
        assert response.content == "ok m1"
        assert response.input_tokens == 10

    @pytest.mark.asyncio
    async def test_concurrent_chats(self, orchestrator, health_monitor) -> None:
        responses = await asyncio.gather(*(orchestrator.chat(MESSAGES) for _ in range(20)))
        assert all(r.model_used == "m1" for r in responses)
        assert health_monitor.get_health("m1").total_requests == 20
        assert orchestrator.statistics()["total_requests"] == 20


class TestConvenienceMethods:
    @pytest.mark.asyncio
    async def test_prompt(self, orchestrator, transport) -> None:
        await orchestrator.prompt("What time is it?")
        _, messages, temperature = transport.calls[0]
        assert temperature == 0.7
        assert len(messages) == 1
        assert messages[0].role == Role.USER

    @pytest.mark.asyncio
    async def test_process_document(self, orchestrator, transport) -> None:
        response = await orchestrator.process_document("Quarterly report...", preferred_provider="m2")
        assert response.model_used == "m2"
        _, messages, _ = transport.calls[0]
        assert [m.role for m in messages] == [Role.SYSTEM, Role.USER]
        assert messages[1].content == "Quarterly report..."


# =============================================================================
# ACCESSORS
# =============================================================================


class TestAccessors:
    @pytest.mark.asyncio
    async def test_statistics(self, orchestrator, transport) -> None:
        await orchestrator.chat(MESSAGES)
        transport.script = {"m1": [RuntimeError("down")]}
        await orchestrator.chat(MESSAGES, preferred_provider="m1")
        transport.script = {m: [RuntimeError("down")] for m in ("m1", "m2", "m3")}
        with pytest.raises(AllModelsFailedError):
            await orchestrator.chat(MESSAGES)

        stats = orchestrator.statistics()
        assert stats["total_requests"] == 3
        assert stats["successful_primary"] == 1
        assert stats["successful_fallback"] == 1
        assert stats["all_failed"] == 1
        assert stats["failure_rate"] == pytest.approx(1 / 3)

    def test_statistics_before_requests(self, orchestrator) -> None:
        stats = orchestrator.statistics()
        assert stats["total_requests"] == 0
        assert stats["primary_success_rate"] == 0.0

    def test_recommended_model(self, transport) -> None:
        orchestrator = RelayOrchestrator.from_config(RelayConfig(), transport)
        assert orchestrator.recommended_model("voice").id == "anthropic/claude-3-haiku"
        assert orchestrator.recommended_model("nonexistent use case") is None

    def test_healthy_models(self, orchestrator, health_monitor) -> None:
        for _ in range(5):
            health_monitor.record_failure("m2", "down")
        assert [m.id for m in orchestrator.healthy_models()] == ["m1", "m3"]
        assert len(orchestrator.available_models()) == 3

    @pytest.mark.asyncio
    async def test_health_summary_and_budget_warnings(self, orchestrator) -> None:
        await orchestrator.chat(MESSAGES)
        assert orchestrator.health_summary().healthy == 1
        assert orchestrator.budget_warnings() == []
