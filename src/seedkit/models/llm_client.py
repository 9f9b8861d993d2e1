"""Client base class shared by all generative-model integrations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..personas import PersonaConfig

__all__ = [
    "ModelClient",
    "ModelClientError",
    "ModelRequest",
    "ModelResponse",
    "ProtocolError",
    "RemoteError",
    "TransportError",
]


class ModelClientError(RuntimeError):
    """Base error raised for model client failures."""


class TransportError(ModelClientError):
    """Raised when the request never reached the endpoint (DNS, TLS, timeout)."""


class RemoteError(ModelClientError):
    """Raised when the endpoint answered with a non-success status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code
        self.message = message


class ProtocolError(ModelClientError):
    """Raised when the endpoint returned a body that cannot be interpreted."""


@dataclass(slots=True)
class ModelRequest:
    """Persona-configured request sent to a generative text endpoint."""

    prompt: str
    persona: PersonaConfig
    model: Optional[str] = None
    max_tokens: int = 4096
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_payload(self, default_model: str) -> Dict[str, Any]:
        """Render the JSON body for the messages API."""
        return {
            "model": self.model or default_model,
            "max_tokens": self.max_tokens,
            "temperature": self.persona.temperature,
            "system": self.persona.system_prompt,
            "messages": [
                {
                    "role": "user",
                    "content": self.prompt,
                }
            ],
        }


@dataclass(slots=True, frozen=True)
class ModelResponse:
    """Raw text produced by a single model call."""

    text: str


class ModelClient:
    """High-level helper that turns a prompt and persona into response text.

    Subclasses implement ``_raw_invoke``. No retries happen here; a failed call
    surfaces immediately to the caller.
    """

    def __init__(self, model: str, *, max_tokens: int = 4096) -> None:
        self._model = model
        self._max_tokens = max_tokens

    @property
    def model(self) -> str:
        """Return the default model name configured for this client."""
        return self._model

    def generate(self, prompt: str, persona: PersonaConfig) -> ModelResponse:
        """Invoke the model once and return its text."""
        request = ModelRequest(prompt=prompt, persona=persona, max_tokens=self._max_tokens)
        return self.invoke(request)

    def invoke(self, request: ModelRequest) -> ModelResponse:
        payload = request.to_payload(self._model)
        text = self._raw_invoke(payload)
        return ModelResponse(text=text)

    def _raw_invoke(self, payload: Dict[str, Any]) -> str:
        """Perform the transport call. Subclasses must implement."""
        raise NotImplementedError("Subclasses must implement _raw_invoke().")
