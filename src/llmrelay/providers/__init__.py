# src/llmrelay/providers/__init__.py
"""
Provider transport interface for the LLMRelay library.

The concrete outbound call to a model API lives outside this library; this
package defines the boundary it is consumed through.
"""

from .base import BaseTransport, CallableTransport

__all__ = ["BaseTransport", "CallableTransport"]
