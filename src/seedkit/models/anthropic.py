"""Production client that speaks the Anthropic messages API."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from ..tools.http import (
    DEFAULT_MAX_RESPONSE_BYTES,
    HttpRequest,
    HttpResponse,
    HttpTransport,
    HttpTransportError,
    ResponseTooLargeError,
    urllib_transport,
)
from .llm_client import ModelClient, ProtocolError, RemoteError, TransportError

__all__ = ["AnthropicClient"]

LOGGER = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://api.anthropic.com/v1/messages"
DEFAULT_MODEL = "claude-3-opus-20240229"
DEFAULT_API_VERSION = "2023-06-01"


class AnthropicClient(ModelClient):
    """Thin adapter around the messages endpoint."""

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        base_url: str = DEFAULT_ENDPOINT,
        model: str = DEFAULT_MODEL,
        api_version: str = DEFAULT_API_VERSION,
        max_tokens: int = 4096,
        transport: Optional[HttpTransport] = None,
        timeout: float = 120.0,
        max_response_bytes: int = DEFAULT_MAX_RESPONSE_BYTES,
    ) -> None:
        super().__init__(model=model, max_tokens=max_tokens)
        self._api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        self._base_url = base_url
        self._api_version = api_version
        self._timeout = timeout
        self._max_response_bytes = max_response_bytes
        self._transport = transport or urllib_transport

        if transport is None and not self._api_key:
            raise ValueError("An API key is required when using the default transport.")

    def _raw_invoke(self, payload: Dict[str, Any]) -> str:
        """Send the request over the configured transport."""
        request = HttpRequest(
            method="POST",
            url=self._base_url,
            headers={
                "Content-Type": "application/json",
                "x-api-key": self._api_key or "",
                "anthropic-version": self._api_version,
            },
            json_body=payload,
            timeout=self._timeout,
            max_bytes=self._max_response_bytes,
        )
        LOGGER.debug(
            "Requesting completion from %s (model=%s, temperature=%s)",
            self._base_url,
            payload.get("model"),
            payload.get("temperature"),
        )

        try:
            response = self._transport(request)
        except ResponseTooLargeError as error:
            raise ProtocolError(str(error)) from error
        except HttpTransportError as error:
            raise TransportError(str(error)) from error

        if response.status != 200:
            raise RemoteError(response.status, self._error_message(response))
        return self._extract_text(response)

    @staticmethod
    def _error_message(response: HttpResponse) -> str:
        """Prefer ``error.message`` from the body, falling back to the raw text."""
        try:
            data = response.json()
        except ValueError:
            return response.body.strip() or "no response body"
        if isinstance(data, dict):
            error = data.get("error")
            if isinstance(error, dict):
                message = error.get("message")
                if isinstance(message, str) and message.strip():
                    return message
        return response.body.strip() or "no response body"

    @staticmethod
    def _extract_text(response: HttpResponse) -> str:
        """Return ``content[0].text`` from a successful messages response."""
        try:
            data = response.json()
        except ValueError as error:
            raise ProtocolError(f"Model endpoint returned invalid JSON: {response.body[:200]}") from error

        content = data.get("content") if isinstance(data, dict) else None
        if not isinstance(content, list) or not content:
            raise ProtocolError("Model response did not contain a content array.")
        first = content[0]
        text = first.get("text") if isinstance(first, dict) else None
        if not isinstance(text, str):
            raise ProtocolError("Model response content[0] did not carry a text field.")
        return text
