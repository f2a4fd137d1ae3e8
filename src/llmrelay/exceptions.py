# src/llmrelay/exceptions.py
"""
Custom exceptions for the LLMRelay library.

This module defines a hierarchy of custom exception classes so that callers
can tell a single provider failure (recovered internally by the fallback
chain) apart from the exhaustion of every candidate model.
"""

from typing import List, Optional


class LLMRelayError(Exception):
    """Base class for all LLMRelay specific errors."""
    def __init__(self, message: str = "An unspecified error occurred in LLMRelay."):
        super().__init__(message)

class ConfigError(LLMRelayError):
    """Raised for errors related to configuration loading or validation."""
    def __init__(self, message: str = "Configuration error."):
        super().__init__(message)

class NoModelsRegisteredError(ConfigError):
    """Raised when the model catalog handed to the orchestrator is empty."""
    def __init__(self, message: str = "No models are registered in the catalog."):
        super().__init__(message)

class ProviderError(LLMRelayError):
    """
    Raised for a failed attempt against one model through the provider transport.

    The orchestrator records it against the model's health and moves on to the
    next candidate; it only reaches the caller wrapped in AllModelsFailedError.
    """
    def __init__(self, provider_name: str = "Unknown", message: str = "Provider error."):
        self.provider_name = provider_name
        self.detail = message
        super().__init__(f"Error with provider '{provider_name}': {message}")

class AllModelsFailedError(LLMRelayError):
    """Raised when every candidate in the fallback chain has failed."""
    def __init__(
        self,
        last_error: Optional[ProviderError] = None,
        attempted: Optional[List[str]] = None,
        message: str = "All models failed.",
    ):
        self.last_error = last_error
        self.attempted = list(attempted or [])
        text = f"{message} Attempted: {self.attempted}."
        if last_error is not None:
            text += f" Last error: {last_error}"
        super().__init__(text)
