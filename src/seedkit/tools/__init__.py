"""Tool integrations shared by the model client and control plane."""

from .http import HttpRequest, HttpResponse, HttpTransport, HttpTransportError, urllib_transport

__all__ = [
    "HttpRequest",
    "HttpResponse",
    "HttpTransport",
    "HttpTransportError",
    "urllib_transport",
]
