"""Convenience exports for seedkit model client implementations."""

from .anthropic import AnthropicClient
from .llm_client import (
    ModelClient,
    ModelClientError,
    ModelRequest,
    ModelResponse,
    ProtocolError,
    RemoteError,
    TransportError,
)

__all__ = [
    "AnthropicClient",
    "ModelClient",
    "ModelClientError",
    "ModelRequest",
    "ModelResponse",
    "ProtocolError",
    "RemoteError",
    "TransportError",
]
