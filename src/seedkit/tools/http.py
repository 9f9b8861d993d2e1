"""Blocking JSON-over-HTTP helper shared by the model client and control plane."""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional

__all__ = [
    "DEFAULT_MAX_RESPONSE_BYTES",
    "HttpRequest",
    "HttpResponse",
    "HttpTransport",
    "HttpTransportError",
    "ResponseTooLargeError",
    "urllib_transport",
]

LOGGER = logging.getLogger(__name__)

DEFAULT_MAX_RESPONSE_BYTES = 1024 * 1024


class HttpTransportError(RuntimeError):
    """Raised when a request never produced an HTTP response (DNS, TLS, timeout)."""


class ResponseTooLargeError(HttpTransportError):
    """Raised when the response body exceeds the configured size limit."""


@dataclass(slots=True)
class HttpRequest:
    """Transport-neutral description of a single HTTP call."""

    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    json_body: Optional[Any] = None
    timeout: float = 60.0
    max_bytes: int = DEFAULT_MAX_RESPONSE_BYTES

    def encoded_body(self) -> Optional[bytes]:
        if self.json_body is None:
            return None
        return json.dumps(self.json_body).encode("utf-8")


@dataclass(slots=True)
class HttpResponse:
    """Status code and decoded body returned by a transport."""

    status: int
    body: str
    headers: Mapping[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        """Decode the body as JSON, raising ``ValueError`` on malformed payloads."""
        return json.loads(self.body)


HttpTransport = Callable[[HttpRequest], HttpResponse]


def _read_limited(stream: Any, max_bytes: int) -> bytes:
    data = stream.read(max_bytes + 1)
    if len(data) > max_bytes:
        raise ResponseTooLargeError(f"Response body exceeded {max_bytes} bytes.")
    return data


def urllib_transport(request: HttpRequest) -> HttpResponse:
    """Default transport backed by ``urllib.request``.

    Non-2xx statuses are returned as responses rather than raised so callers can
    map them onto their own error types.
    """
    headers = dict(request.headers)
    body = request.encoded_body()
    if body is not None:
        headers.setdefault("Content-Type", "application/json")
    try:
        outgoing = urllib.request.Request(
            request.url,
            data=body,
            headers=headers,
            method=request.method.upper(),
        )
    except ValueError as error:
        raise HttpTransportError(f"Invalid request URL {request.url!r}: {error}") from error
    LOGGER.debug("%s %s", request.method.upper(), request.url)

    try:
        with urllib.request.urlopen(outgoing, timeout=request.timeout) as response:
            raw = _read_limited(response, request.max_bytes)
            status = getattr(response, "status", 200)
            response_headers = dict(response.headers.items())
    except urllib.error.HTTPError as error:
        raw = _read_limited(error, request.max_bytes) if error.fp is not None else b""
        return HttpResponse(
            status=error.code,
            body=raw.decode("utf-8", errors="replace"),
            headers=dict(error.headers.items()) if error.headers else {},
        )
    except TimeoutError as error:  # pragma: no cover - network-dependent
        raise HttpTransportError(f"Request to {request.url} timed out.") from error
    except urllib.error.URLError as error:
        raise HttpTransportError(f"Failed to reach {request.url}: {error.reason}") from error
    except OSError as error:  # pragma: no cover - network-dependent
        raise HttpTransportError(f"Connection to {request.url} failed: {error}") from error
    except ValueError as error:
        raise HttpTransportError(f"Invalid request to {request.url}: {error}") from error

    return HttpResponse(status=status, body=raw.decode("utf-8", errors="replace"), headers=response_headers)
