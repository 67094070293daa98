"""Core transport primitives."""

from .http_client import HttpClient, HttpRequest, HttpResponse, TransportError

__all__ = [
    "HttpClient",
    "HttpRequest",
    "HttpResponse",
    "TransportError",
]
