# tests/test_exceptions.py
"""
Tests for the LLMRelay exception hierarchy.
"""

import pytest

from llmrelay.exceptions import (
    AllModelsFailedError,
    ConfigError,
    LLMRelayError,
    NoModelsRegisteredError,
    ProviderError,
)


class TestHierarchy:
    """All relay errors share one base class."""

    @pytest.mark.parametrize(
        "exc_type",
        [ConfigError, NoModelsRegisteredError, ProviderError, AllModelsFailedError],
    )
    def test_subclasses_base(self, exc_type) -> None:
        assert issubclass(exc_type, LLMRelayError)

    def test_no_models_is_config_error(self) -> None:
        assert issubclass(NoModelsRegisteredError, ConfigError)

    def test_default_messages(self) -> None:
        assert "unspecified" in str(LLMRelayError())
        assert "No models" in str(NoModelsRegisteredError())


class TestProviderError:
    def test_message_and_attributes(self) -> None:
        err = ProviderError("openai/gpt-4-turbo", "HTTP 503")
        assert err.provider_name == "openai/gpt-4-turbo"
        assert err.detail == "HTTP 503"
        assert str(err) == "Error with provider 'openai/gpt-4-turbo': HTTP 503"


class TestAllModelsFailedError:
    def test_carries_last_error_and_attempts(self) -> None:
        last = ProviderError("m2", "timeout")
        err = AllModelsFailedError(last_error=last, attempted=["m1", "m2"])
        assert err.last_error is last
        assert err.attempted == ["m1", "m2"]
        assert "timeout" in str(err)
        assert "m1" in str(err)

    def test_without_last_error(self) -> None:
        err = AllModelsFailedError()
        assert err.last_error is None
        assert err.attempted == []
