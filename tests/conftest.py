from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, List

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from seedkit.models.llm_client import ModelClient, ModelClientError  # noqa: E402
from seedkit.tools.http import HttpRequest, HttpResponse  # noqa: E402


ARCHITECT_RESPONSE = (
    "Here is my architectural assessment.\n\n"
    "Service Name: billing-api\n"
    "Technology Stack: node, postgres\n\n"
    "The service exposes invoice endpoints.\n"
)


@dataclass(slots=True)
class ScriptedTransport:
    """HTTP transport double that replays queued responses and records requests."""

    responses: List[HttpResponse | Exception] = field(default_factory=list)
    requests: List[HttpRequest] = field(default_factory=list)
    handler: Callable[[HttpRequest], HttpResponse] | None = None

    def queue_json(self, status: int, payload: Any) -> "ScriptedTransport":
        self.responses.append(HttpResponse(status=status, body=json.dumps(payload)))
        return self

    def __call__(self, request: HttpRequest) -> HttpResponse:
        self.requests.append(request)
        if self.handler is not None:
            return self.handler(request)
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class StubModelClient(ModelClient):
    """Model client returning canned text, or raising a canned error."""

    def __init__(self, text: str = "", *, error: ModelClientError | None = None) -> None:
        super().__init__("stub-model")
        self._text = text
        self._error = error
        self.payloads: list[dict[str, Any]] = []

    def _raw_invoke(self, payload: dict[str, Any]) -> str:
        self.payloads.append(payload)
        if self._error is not None:
            raise self._error
        return self._text


@pytest.fixture()
def transport() -> ScriptedTransport:
    return ScriptedTransport()


@pytest.fixture()
def architect_response() -> str:
    return ARCHITECT_RESPONSE
