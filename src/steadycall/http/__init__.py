"""HTTP envelopes and transports.

- RequestDescriptor / HttpResponse: immutable request and response models
- Transport: protocol for performing one exchange with a deadline
- HttpxTransport: default transport over httpx.AsyncClient
"""

from .models import HttpMethod, HttpResponse, RequestDescriptor
from .transport import HttpxTransport, Transport, transport_error_from_httpx

__all__ = [
    "HttpMethod",
    "HttpResponse",
    "RequestDescriptor",
    "Transport",
    "HttpxTransport",
    "transport_error_from_httpx",
]
