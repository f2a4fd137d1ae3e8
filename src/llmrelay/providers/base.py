# src/llmrelay/providers/base.py
"""
Abstract Base Class for provider transports.

A transport performs the outbound call for one model (for example an HTTP
request to an OpenRouter-compatible chat completions endpoint) and reports
the generated content with its token usage. LLMRelay does not implement a
wire protocol itself; applications supply a transport.

Contract:
    - send() either returns a TransportResponse or raises. Any exception is
      treated as a failed attempt for that model. A plain mapping with the
      same fields is validated into a TransportResponse; a result that fails
      validation counts as a failed attempt too.
    - send() must enforce its own timeout; the orchestrator applies none.
    - The orchestrator holds no lock while send() runs, so a transport may
      be called concurrently for different requests.
"""

import abc
from typing import Any, Awaitable, Callable, List, Optional

from ..models import ChatMessage, TransportResponse

SendFunction = Callable[[str, List[ChatMessage], Optional[float]], Awaitable[TransportResponse]]


class BaseTransport(abc.ABC):
    """
    Abstract Base Class for provider transport integrations.
    """

    @abc.abstractmethod
    def get_name(self) -> str:
        """
        Return the name of this transport, used in logs and error messages.

        Examples: "openrouter", "fake".
        """
        pass

    @abc.abstractmethod
    async def send(
        self,
        model_id: str,
        messages: List[ChatMessage],
        temperature: Optional[float] = None,
    ) -> TransportResponse:
        """
        Send a chat completion request for one model.

        Args:
            model_id: Catalog id of the model to call.
            messages: The conversation, in order.
            temperature: Optional sampling temperature.

        Returns:
            The generated content with input and output token counts.

        Raises:
            Exception: Any failure (HTTP error, timeout, malformed response).
        """
        pass

    async def close(self) -> None:
        """Release any resources held by the transport. Default is a no-op."""
        return None


class CallableTransport(BaseTransport):
    """
    Adapts a plain coroutine function to the BaseTransport interface.

    Args:
        send_fn: ``async def send_fn(model_id, messages, temperature) -> TransportResponse``.
        name: Name reported by get_name().
    """

    def __init__(self, send_fn: SendFunction, name: str = "callable"):
        self._send_fn = send_fn
        self._name = name

    def get_name(self) -> str:
        return self._name

    async def send(
        self,
        model_id: str,
        messages: List[ChatMessage],
        temperature: Optional[float] = None,
    ) -> TransportResponse:
        result: Any = await self._send_fn(model_id, messages, temperature)
        if isinstance(result, TransportResponse):
            return result
        return TransportResponse.model_validate(result)
